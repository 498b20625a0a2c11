from typing import Optional, Iterable
from reco_engine.domain.models.interaction import ProductCounters
import hashlib
import json

def _h(window_days, limit):
    """
    Short hash of the counters query.
    Different windows/limits never share a cache entry.
    """
    s = json.dumps({"w": window_days, "k": limit}, sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(s.encode()).hexdigest()[:10]

class CountersCacheRepo:
    """
    Adapter for caching trailing-window product counters in Redis.
    Stores and retrieves lists of ProductCounters objects.
    """
    def __init__(self, redis, key_prefix: str = "trending"):
        self.cache = redis
        self.prefix = key_prefix

    def key(self, window_days: int, limit: int) -> str:
        return f"{self.prefix}:{_h(window_days, limit)}"

    async def get(self, key: str) -> Optional[list[ProductCounters]]:
        """
        Cached counters for `key`, or None on a miss.
        """
        raw = await self.cache.get(key)
        if raw:
            data = json.loads(raw)
            return [ProductCounters.model_validate(x) for x in data]
        return None

    async def set(self, key: str, counters: Iterable[ProductCounters], ttl: int) -> None:
        payload = [c.model_dump(mode="json") for c in counters]
        await self.cache.set(key, json.dumps(payload), ex=ttl)
