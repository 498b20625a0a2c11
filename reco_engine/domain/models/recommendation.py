from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Literal
from reco_engine.domain.models.product import Product

RecommendationType = Literal[
    "similar",
    "complementary",
    "trending",
    "personalized",
    "collaborative",
    "cross_sell",
    "up_sell",
]


class PriceRange(BaseModel):
    min: float = Field(default=0.0, ge=0)
    max: Optional[float] = Field(default=None, ge=0)   # None: no upper bound

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.max is not None and self.min > self.max:
            raise ValueError("price_range.min must be <= price_range.max")
        return self


class RecommendationContext(BaseModel):
    """
    Everything the caller knows about one request.
    Accepts both snake_case and camelCase keys (`currentProductId`, ...).
    """
    user_id: Optional[str] = None
    current_product_id: Optional[str] = None
    search_query: Optional[str] = None
    category: Optional[str] = None
    price_range: Optional[PriceRange] = None
    viewed_products: List[str] = []
    purchased_products: List[str] = []
    user_segment: Optional[str] = None
    limit: int = Field(default=20, ge=1)

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ProductRecommendation(BaseModel):
    product_id: str
    score: float = Field(ge=0, le=1)
    reason: str
    type: RecommendationType
    confidence: float = Field(ge=0, le=1)

    model_config = {"frozen": True}


class RecommendationMetadata(BaseModel):
    algorithm: str
    processed_at: str
    total_analyzed: int = 0
    user_id: Optional[str] = None
    session_id: str

    model_config = {"frozen": True}


class RecommendationResult(BaseModel):
    products: List[Product]
    recommendations: List[ProductRecommendation]
    metadata: RecommendationMetadata

    model_config = {"frozen": True}
