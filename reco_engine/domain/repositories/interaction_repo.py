# reco_engine/domain/repositories/interaction_repo.py

from __future__ import annotations
import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Set
from motor.motor_asyncio import AsyncIOMotorDatabase
from reco_engine.domain.models.interaction import InteractionRecord, ProductCounters

logger = logging.getLogger(__name__)

# A user "liked" a product when they bought it or rated it 4+
LIKED_MATCH: Dict[str, Any] = {
    "$or": [
        {"event_type": "purchase"},
        {"rating": {"$gte": 4}},
    ]
}


def _json_preview(obj: Any, limit: int = 1000) -> str:
    """Minify and truncate JSON for debug logs."""
    try:
        s = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, default=str)
        return s if len(s) <= limit else s[:limit] + "…[truncated]"
    except Exception:
        return "<unserializable>"


class InteractionRepo:
    """
    Interaction log backed by the append-only 'events' collection:
      { user_id, product_id, event_type, timestamp, rating?, session_id?, metadata }
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "events"):
        self.col = db[collection_name]

    async def record(self, interaction: InteractionRecord) -> None:
        await self.col.insert_one(interaction.model_dump())

    async def list_user_interactions(self, user_id: str, event_type: str, limit: int) -> List[InteractionRecord]:
        """One kind of interaction for a user, most recent first."""
        cursor = (
            self.col.find({"user_id": user_id, "event_type": event_type}, {"_id": 0})
            .sort("timestamp", -1)
            .limit(limit)
        )
        return [InteractionRecord.model_validate(doc) async for doc in cursor]

    async def list_recent(self, user_id: str, limit: int) -> List[InteractionRecord]:
        """All interactions for a user, most recent first."""
        cursor = self.col.find({"user_id": user_id}, {"_id": 0}).sort("timestamp", -1).limit(limit)
        return [InteractionRecord.model_validate(doc) async for doc in cursor]

    async def find_co_interactors(self, product_ids: Iterable[str], *, exclude_user_id: str, limit: int) -> List[str]:
        """
        Other users who liked at least one of `product_ids`,
        ordered by how many of them they liked.
        """
        ids = list(product_ids)
        if not ids:
            return []
        pipeline: List[Dict[str, Any]] = [
            {"$match": {"product_id": {"$in": ids}, "user_id": {"$nin": [exclude_user_id, None]}}},
            {"$match": LIKED_MATCH},
            {"$group": {"_id": "$user_id", "overlap": {"$addToSet": "$product_id"}}},
            {"$project": {"_id": 0, "user_id": "$_id", "n": {"$size": "$overlap"}}},
            {"$sort": {"n": -1, "user_id": 1}},
            {"$limit": limit},
        ]
        logger.debug("co_interactors pipeline=%s", _json_preview(pipeline))
        docs = await self.col.aggregate(pipeline).to_list(length=limit)
        return [d["user_id"] for d in docs]

    async def get_liked_products(self, user_ids: Iterable[str]) -> Dict[str, Set[str]]:
        """Liked product ids per user, in one round trip."""
        ids = list(user_ids)
        if not ids:
            return {}
        pipeline: List[Dict[str, Any]] = [
            {"$match": {"user_id": {"$in": ids}}},
            {"$match": LIKED_MATCH},
            {"$group": {"_id": "$user_id", "products": {"$addToSet": "$product_id"}}},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=None)
        return {d["_id"]: set(d.get("products") or []) for d in docs}

    async def list_trending_counters(self, since: datetime, limit: int) -> List[ProductCounters]:
        """
        Per-product view/purchase counts since `since`, busiest first
        (views, then purchases).
        """
        pipeline: List[Dict[str, Any]] = [
            {"$match": {"timestamp": {"$gte": since}, "event_type": {"$in": ["view", "purchase"]}}},
            {"$group": {
                "_id": "$product_id",
                "view_count": {"$sum": {"$cond": [{"$eq": ["$event_type", "view"]}, 1, 0]}},
                "purchase_count": {"$sum": {"$cond": [{"$eq": ["$event_type", "purchase"]}, 1, 0]}},
                "last_viewed_at": {"$max": {"$cond": [{"$eq": ["$event_type", "view"]}, "$timestamp", None]}},
            }},
            {"$sort": {"view_count": -1, "purchase_count": -1, "_id": 1}},
            {"$limit": limit},
            {"$project": {
                "_id": 0,
                "product_id": "$_id",
                "view_count": 1,
                "purchase_count": 1,
                "last_viewed_at": 1,
            }},
        ]
        logger.debug("trending pipeline=%s", _json_preview(pipeline, limit=2000))

        t0 = time.perf_counter()
        docs = await self.col.aggregate(pipeline).to_list(length=limit)
        logger.info("trending counters db_ok items=%s db_time=%.3fs", len(docs), time.perf_counter() - t0)
        return [ProductCounters.model_validate(d) for d in docs]
