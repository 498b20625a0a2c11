"""
In-memory stand-ins for the Mongo repositories and Redis, plus a small
agri-store catalog shared by the test modules.
"""

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest

from reco_engine.core.config import Settings
from reco_engine.domain.models.interaction import InteractionRecord, ProductCounters
from reco_engine.domain.models.product import Product
from reco_engine.domain.services.engine_svc import RecommendationEngine

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_product(pid, **kw) -> Product:
    kw.setdefault("name", pid)
    kw.setdefault("price", 100.0)
    return Product(product_id=pid, **kw)


def event(user_id, product_id, kind, minutes_ago=0, rating=None) -> InteractionRecord:
    return InteractionRecord(
        user_id=user_id,
        product_id=product_id,
        event_type=kind,
        rating=rating,
        timestamp=NOW - timedelta(minutes=minutes_ago),
    )


class FakeProductRepo:
    def __init__(self, products, fail=False):
        self.products = {p.product_id: p for p in products}
        self.fail = fail
        self.calls = defaultdict(int)

    def _check(self, name):
        self.calls[name] += 1
        if self.fail:
            raise ConnectionError("catalog unavailable")

    async def list_candidates(self, *, category_id=None, min_price=None, max_price=None, limit=100):
        self._check("list_candidates")
        out = []
        for p in self.products.values():
            if p.status != "active":
                continue
            if category_id and p.category_id != category_id:
                continue
            if min_price is not None and p.price < min_price:
                continue
            if max_price is not None and p.price > max_price:
                continue
            out.append(p)
        return out[:limit]

    async def get_by_product_id(self, product_id):
        self._check("get_by_product_id")
        return self.products.get(product_id)

    async def get_many_by_product_ids(self, ids):
        self._check("get_many_by_product_ids")
        # reversed on purpose: callers must restore their own order
        return [self.products[i] for i in reversed(ids) if i in self.products]


class FakeInteractionRepo:
    def __init__(self, events=(), counters=(), delay=0.0):
        self.events = list(events)
        self.counters = list(counters)
        self.delay = delay
        self.counter_calls = 0
        self.windows = []      # `since` of every counters query

    @staticmethod
    def _liked(e):
        return e.event_type == "purchase" or (e.rating is not None and e.rating >= 4)

    async def record(self, interaction):
        self.events.append(interaction)

    async def list_user_interactions(self, user_id, event_type, limit):
        rows = [e for e in self.events if e.user_id == user_id and e.event_type == event_type]
        return sorted(rows, key=lambda e: e.timestamp, reverse=True)[:limit]

    async def list_recent(self, user_id, limit):
        rows = [e for e in self.events if e.user_id == user_id]
        return sorted(rows, key=lambda e: e.timestamp, reverse=True)[:limit]

    async def find_co_interactors(self, product_ids, *, exclude_user_id, limit):
        wanted = set(product_ids)
        overlap = defaultdict(set)
        for e in self.events:
            if e.user_id in (None, exclude_user_id) or e.product_id not in wanted or not self._liked(e):
                continue
            overlap[e.user_id].add(e.product_id)
        ranked = sorted(overlap, key=lambda u: (-len(overlap[u]), u))
        return ranked[:limit]

    async def get_liked_products(self, user_ids):
        wanted = set(user_ids)
        liked = defaultdict(set)
        for e in self.events:
            if e.user_id in wanted and self._liked(e):
                liked[e.user_id].add(e.product_id)
        return dict(liked)

    async def list_trending_counters(self, since, limit):
        self.counter_calls += 1
        self.windows.append(since)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.counters[:limit]


class FakeTelemetryRepo:
    def __init__(self, fail=False):
        self.fail = fail
        self.records = []

    async def log_recommendations(self, *, context, recommendations, session_id, algorithm, generated_at=None):
        if self.fail:
            raise ConnectionError("telemetry sink down")
        self.records.append({
            "context": context,
            "recommendations": recommendations,
            "session_id": session_id,
            "algorithm": algorithm,
        })

    async def list_for_user(self, user_id, limit=20):
        return [
            {"session_id": r["session_id"], "algorithm": r["algorithm"]}
            for r in self.records
            if r["context"].user_id == user_id
        ][:limit]


class FakeRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise ConnectionError("redis down")
        self.store[key] = value


@pytest.fixture
def catalog():
    return [
        make_product("fert-1", category_id="fertilizer", brand="Bio", price=500, product_type="fertilizer",
                     tags=["organic", "npk"], specifications={"npk": "10-10-10", "weight_kg": 5}),
        make_product("fert-2", category_id="fertilizer", brand="Bio", price=550, product_type="fertilizer",
                     tags=["organic"]),
        make_product("fert-3", category_id="fertilizer", brand="Agro", price=1200, product_type="fertilizer",
                     specifications={"npk": "20-20-20", "weight_kg": 10}),
        make_product("pest-1", category_id="fertilizer", brand="Agro", price=450, product_type="pesticide"),
        make_product("seed-1", category_id="seeds", brand="Bio", price=120, product_type="seed", tags=["organic"]),
        make_product("seed-2", category_id="seeds", brand="GreenLeaf", price=90, product_type="seed"),
        make_product("tool-1", category_id="tools", brand="Forge", price=2500),
        make_product("old-1", category_id="fertilizer", brand="Bio", price=510, status="inactive"),
    ]


@pytest.fixture
def counters():
    return [
        ProductCounters(product_id="seed-2", view_count=150, purchase_count=60),
        ProductCounters(product_id="tool-1", view_count=40, purchase_count=5),
        ProductCounters(product_id="fert-2", view_count=11, purchase_count=0),
        ProductCounters(product_id="seed-1", view_count=10, purchase_count=30),
    ]


@pytest.fixture
def events():
    return [
        # u1 bought the two Bio fertilizers and viewed a seed
        event("u1", "fert-1", "purchase", 60),
        event("u1", "fert-2", "purchase", 30),
        event("u1", "seed-1", "view", 5),
        # neighbours
        event("u2", "fert-1", "purchase", 100),
        event("u2", "fert-2", "purchase", 90),
        event("u2", "pest-1", "purchase", 80),
        event("u3", "fert-1", "purchase", 70),
        event("u3", "pest-1", "view", 65, rating=5),
        event("u4", "fert-2", "purchase", 50),
        event("u4", "tool-1", "purchase", 40),
        # anonymous traffic never counts as a neighbour
        event(None, "fert-1", "purchase", 10),
    ]


@pytest.fixture
def settings():
    return Settings(_env_file=None, scorer_timeout_s=0.5)


@pytest.fixture
def product_repo(catalog):
    return FakeProductRepo(catalog)


@pytest.fixture
def interaction_repo(events, counters):
    return FakeInteractionRepo(events, counters)


@pytest.fixture
def telemetry_repo():
    return FakeTelemetryRepo()


@pytest.fixture
def engine(product_repo, interaction_repo, telemetry_repo, settings):
    return RecommendationEngine(product_repo, interaction_repo, telemetry_repo, settings=settings)
