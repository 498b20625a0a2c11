# reco_engine/domain/repositories/telemetry_repo.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List
from motor.motor_asyncio import AsyncIOMotorDatabase
from reco_engine.domain.models.recommendation import ProductRecommendation, RecommendationContext


class TelemetryRepo:
    """
    Sink for one record per recommendation run ('recommendation_logs').
    Used for offline analysis only; nothing here feeds back into scoring.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "recommendation_logs"):
        self.col = db[collection_name]

    async def log_recommendations(
        self,
        *,
        context: RecommendationContext,
        recommendations: List[ProductRecommendation],
        session_id: str,
        algorithm: str,
        generated_at: datetime | None = None,
    ) -> None:
        await self.col.insert_one({
            "user_id": context.user_id,
            "session_id": session_id,
            "algorithm": algorithm,
            "context": context.model_dump(),
            "recommendations": [r.model_dump() for r in recommendations],
            "generated_at": generated_at or datetime.now(timezone.utc),
        })

    async def list_for_user(self, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        cursor = self.col.find({"user_id": user_id}, {"_id": 0}).sort("generated_at", -1).limit(limit)
        return [doc async for doc in cursor]
