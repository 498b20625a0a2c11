from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime, timezone

InteractionKind = Literal["view", "add_to_cart", "purchase"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InteractionRecord(BaseModel):
    """One row of the append-only `events` log."""
    user_id: Optional[str] = None          # None for anonymous sessions
    product_id: str
    event_type: InteractionKind
    timestamp: datetime = Field(default_factory=_utcnow)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = {}

    model_config = {"frozen": True, "extra": "ignore"}


class ProductCounters(BaseModel):
    """Per-product engagement over the trailing window."""
    product_id: str
    view_count: int = Field(default=0, ge=0)
    purchase_count: int = Field(default=0, ge=0)
    last_viewed_at: Optional[datetime] = None

    model_config = {"frozen": True}


class UserBehavior(BaseModel):
    views: List[InteractionRecord] = []
    purchases: List[InteractionRecord] = []

    model_config = {"frozen": True}
