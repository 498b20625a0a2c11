import logging
import time
from typing import List
from reco_engine.domain.models.product import Product
from reco_engine.domain.models.recommendation import RecommendationContext

logger = logging.getLogger(__name__)


async def build_candidate_pool(product_repo, context: RecommendationContext, limit: int = 100) -> List[Product]:
    """
    Bounded working set for one call: active products, narrowed by the
    context's category and price range when given.
    Repository errors propagate to the caller.
    """
    t0 = time.perf_counter()
    pr = context.price_range
    pool = await product_repo.list_candidates(
        category_id=context.category,
        min_price=pr.min if pr else None,
        max_price=pr.max if pr else None,
        limit=limit,
    )
    logger.info(
        "candidate_pool category=%s price_range=%s size=%s time=%.3fs",
        context.category, (pr.min, pr.max) if pr else None, len(pool), time.perf_counter() - t0,
    )
    return pool[:limit]
