from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated
from fastapi import APIRouter, Depends, Query

from reco_engine.api.deps import interaction_repo, telemetry_repo
from reco_engine.api.v1.schemas.reco import InteractionAck, InteractionIn, UserHistoryOut
from reco_engine.domain.models.interaction import InteractionRecord
from reco_engine.domain.repositories.interaction_repo import InteractionRepo
from reco_engine.domain.repositories.telemetry_repo import TelemetryRepo

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])

InteractionsDep = Annotated[InteractionRepo, Depends(interaction_repo)]
TelemetryDep = Annotated[TelemetryRepo, Depends(telemetry_repo)]


@router.post("/interactions", response_model=InteractionAck, status_code=201)
async def track_interaction(body: InteractionIn, interactions: InteractionsDep) -> InteractionAck:
    """
    Append one view / add_to_cart / purchase event to the interaction log.
    These events feed the collaborative, trending and personalization scorers.
    """
    record = InteractionRecord(
        user_id=body.user_id,
        product_id=body.product_id,
        event_type=body.interaction_type,
        rating=body.rating,
        session_id=body.session_id,
        metadata=body.metadata,
    )
    await interactions.record(record)
    logger.info("interaction recorded user_id=%s product_id=%s type=%s", body.user_id, body.product_id, body.interaction_type)
    return InteractionAck()


@router.get("/users/{user_id}/history", response_model=UserHistoryOut)
async def user_history(
    user_id: str,
    interactions: InteractionsDep,
    telemetry: TelemetryDep,
    limit: int = Query(20, ge=1, le=100, description="Max items per history list"),
) -> UserHistoryOut:
    """Recent interactions and recommendation runs for one user, newest first."""
    logger.info("Request: user_history user_id=%s limit=%s", user_id, limit)
    events = await interactions.list_recent(user_id, limit)
    logs = await telemetry.list_for_user(user_id, limit)
    return UserHistoryOut(
        user_id=user_id,
        interaction_history=events,
        recommendation_history=logs,
        generated_at=datetime.now(timezone.utc),
    )
