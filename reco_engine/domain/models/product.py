from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

class Product(BaseModel):
    product_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    brand: Optional[str] = None
    product_type: Optional[str] = None   # e.g. "fertilizer", "seed"; drives cross-sell pairs
    price: float = Field(default=0.0, ge=0)
    currency: Optional[str] = None
    stock: Optional[int] = None
    status: str = "active"
    image_url: Optional[str] = None
    tags: List[str] = []
    specifications: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"frozen": True, "extra": "ignore"}  # immutable snapshot shared by scorers
