# reco_engine/api/v1/routers/recommendations.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Annotated, Optional
import time
import logging

from pydantic import ValidationError

from reco_engine.api.deps import get_engine
from reco_engine.api.v1.schemas.reco import RecommendationRequest
from reco_engine.domain.models.recommendation import PriceRange, RecommendationContext, RecommendationResult
from reco_engine.domain.services.engine_svc import RecommendationEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])

EngineDep = Annotated[RecommendationEngine, Depends(get_engine)]


async def _run(engine: RecommendationEngine, context: RecommendationContext, route: str) -> RecommendationResult:
    start_time = time.perf_counter()
    res = await engine.generate_recommendations(context)
    logger.info(
        "Response: %s user_id=%s product_id=%s count=%s algorithm=%s elapsed_time=%.4fs",
        route, context.user_id, context.current_product_id, len(res.recommendations),
        res.metadata.algorithm, time.perf_counter() - start_time,
    )
    return res


@router.post("/recommendations", response_model=RecommendationResult)
async def recommend(body: RecommendationRequest, engine: EngineDep) -> RecommendationResult:
    """Full context in the body (snake_case or camelCase keys)."""
    return await _run(engine, body.context, "recommend")


@router.get("/recommendations", response_model=RecommendationResult)
async def recommend_query(
    engine: EngineDep,
    user_id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Free-text search query"),
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    limit: int = Query(10, ge=1, le=50),
) -> RecommendationResult:
    try:
        price_range = (
            PriceRange(min=min_price if min_price is not None else 0.0, max=max_price)
            if min_price is not None or max_price is not None
            else None
        )
    except ValidationError:
        raise HTTPException(status_code=422, detail="min_price must be <= max_price")

    context = RecommendationContext(
        user_id=user_id,
        current_product_id=product_id,
        search_query=q,
        category=category,
        price_range=price_range,
        limit=limit,
    )
    return await _run(engine, context, "recommend_query")


@router.get("/products/{product_id}/recommendations", response_model=RecommendationResult)
async def product_recommendations(
    product_id: str,
    engine: EngineDep,
    user_id: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=50),
) -> RecommendationResult:
    """Recommendations anchored on a product page."""
    context = RecommendationContext(user_id=user_id, current_product_id=product_id, limit=limit)
    return await _run(engine, context, "product_recommendations")
