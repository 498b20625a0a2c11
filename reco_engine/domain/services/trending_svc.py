import logging
import time
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence
from reco_engine.domain.models.interaction import ProductCounters
from reco_engine.domain.models.product import Product
from reco_engine.domain.models.recommendation import ProductRecommendation
from reco_engine.domain.repositories.counters_cache_repo import CountersCacheRepo
from reco_engine.domain.services.constants import (
    KIND_TRENDING,
    TRENDING_PURCHASE_NORM,
    TRENDING_THRESHOLD,
    TRENDING_TOP_K,
    TRENDING_VIEW_NORM,
)
from reco_engine.domain.services.scoring import make_recommendation, top_k

logger = logging.getLogger(__name__)


def trending_score(counters: ProductCounters) -> float:
    view_score = min(counters.view_count / TRENDING_VIEW_NORM, 1.0)
    purchase_score = min(counters.purchase_count / TRENDING_PURCHASE_NORM, 1.0)
    return (view_score + purchase_score) / 2


def score_trending(counters: Sequence[ProductCounters], candidates: Sequence[Product]) -> List[ProductRecommendation]:
    pool = {c.product_id for c in candidates}
    recs: List[ProductRecommendation] = []
    for c in counters:
        if c.view_count <= TRENDING_THRESHOLD or c.product_id not in pool:
            continue
        recs.append(make_recommendation(c.product_id, trending_score(c), f"{c.view_count} views in the last week", KIND_TRENDING))
    return top_k(recs, TRENDING_TOP_K)


async def load_trending_counters(
    interaction_repo,
    redis=None,
    *,
    window_days: int = 7,
    limit: int = 50,
    ttl: int = 300,
    now: Optional[datetime] = None,
) -> List[ProductCounters]:
    """
    Trailing-window counters, read through Redis when a client is given.
    Cache errors are logged and bypassed; repository errors propagate.
    """
    cache = CountersCacheRepo(redis) if redis is not None else None
    key = cache.key(window_days, limit) if cache else None

    if cache:
        try:
            if (cached := await cache.get(key)) is not None:
                logger.info("trending cache_hit key=%s items=%s", key, len(cached))
                return cached
        except Exception as e:
            logger.warning("trending redis.get error key=%s err=%s", key, e)

    since = (now or datetime.now(timezone.utc)) - timedelta(days=window_days)
    counters = await interaction_repo.list_trending_counters(since, limit)

    if cache:
        try:
            await cache.set(key, counters, ttl=ttl)
            logger.debug("trending cache_set key=%s ttl=%ss items=%s", key, ttl, len(counters))
        except Exception as e:
            logger.warning("trending redis.set error key=%s err=%s", key, e)
    return counters


async def trending_recommendations(
    interaction_repo,
    candidates: Sequence[Product],
    redis=None,
    **kw,
) -> List[ProductRecommendation]:
    t0 = time.perf_counter()
    counters = await load_trending_counters(interaction_repo, redis, **kw)
    recs = score_trending(counters, candidates)
    logger.info("trending counters=%s items=%s time=%.3fs", len(counters), len(recs), time.perf_counter() - t0)
    return recs
