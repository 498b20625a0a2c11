from typing import List, Optional, Sequence
from reco_engine.domain.models.product import Product
from reco_engine.domain.models.recommendation import ProductRecommendation
from reco_engine.domain.services.constants import (
    KIND_SIMILAR,
    PRICE_BAND,
    SIM_BRAND_WEIGHT,
    SIM_CATEGORY_WEIGHT,
    SIM_PRICE_WEIGHT,
    SIM_TAGS_WEIGHT,
    SIMILARITY_THRESHOLD,
    SIMILARITY_TOP_K,
)
from reco_engine.domain.services.scoring import clamp, make_recommendation, top_k


def prices_close(a: float, b: float) -> bool:
    """True when a/b or b/a falls inside PRICE_BAND."""
    lo, hi = PRICE_BAND
    if a <= 0 or b <= 0:
        return a == b
    return lo <= a / b <= hi or lo <= b / a <= hi


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return a is not None and a == b


def tag_overlap(a: Sequence[str], b: Sequence[str]) -> float:
    sa, sb = set(a), set(b)
    denom = max(len(sa), len(sb))
    if denom == 0:
        return 0.0
    return len(sa & sb) / denom


def product_similarity(a: Product, b: Product) -> float:
    """Attribute-overlap similarity in [0, 1]; symmetric in its arguments."""
    score = 0.0
    if _same(a.category_id, b.category_id):
        score += SIM_CATEGORY_WEIGHT
    if prices_close(a.price, b.price):
        score += SIM_PRICE_WEIGHT
    if _same(a.brand, b.brand):
        score += SIM_BRAND_WEIGHT
    score += tag_overlap(a.tags, b.tags) * SIM_TAGS_WEIGHT
    return clamp(score)


def similarity_reason(a: Product, b: Product) -> str:
    if _same(a.category_id, b.category_id):
        return "Same category with similar features"
    if _same(a.brand, b.brand):
        return "Same brand product"
    if prices_close(a.price, b.price):
        return "Similar price range"
    return "Similar characteristics"


def score_similar(anchor: Optional[Product], candidates: Sequence[Product]) -> List[ProductRecommendation]:
    """Content-based neighbours of the anchor product."""
    if anchor is None:
        return []

    recs: List[ProductRecommendation] = []
    for candidate in candidates:
        if candidate.product_id == anchor.product_id:
            continue
        score = product_similarity(anchor, candidate)
        if score >= SIMILARITY_THRESHOLD:
            recs.append(make_recommendation(candidate.product_id, score, similarity_reason(anchor, candidate), KIND_SIMILAR))
    return top_k(recs, SIMILARITY_TOP_K)
