# api/v1/schemas/reco.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from reco_engine.domain.models.interaction import InteractionKind, InteractionRecord
from reco_engine.domain.models.recommendation import RecommendationContext


class RecommendationRequest(BaseModel):
    context: RecommendationContext


class InteractionIn(BaseModel):
    user_id: str
    product_id: str
    interaction_type: InteractionKind
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class InteractionAck(BaseModel):
    success: bool = True
    message: str = "Interaction logged successfully"


class UserHistoryOut(BaseModel):
    user_id: str
    interaction_history: List[InteractionRecord]
    recommendation_history: List[Dict[str, Any]]
    generated_at: datetime
