import logging
from collections import Counter
from typing import List, Optional, Sequence, Tuple
from pydantic import BaseModel
from reco_engine.domain.models.product import Product
from reco_engine.domain.models.recommendation import ProductRecommendation
from reco_engine.domain.services.constants import (
    KIND_PERSONALIZED,
    PERS_BRAND_WEIGHT,
    PERS_CATEGORY_WEIGHT,
    PERS_PRICE_WEIGHT,
    PERSONALIZATION_MIN_SCORE,
    PERSONALIZATION_TOP_K,
    PREFERENCE_TOP_N,
)
from reco_engine.domain.services.scoring import make_recommendation, top_k

logger = logging.getLogger(__name__)


class UserPreferences(BaseModel):
    categories: List[str] = []
    brands: List[str] = []
    price_range: Optional[Tuple[float, float]] = None

    model_config = {"frozen": True}


def _most_common(values, n: int) -> List[str]:
    counts = Counter(v for v in values if v)
    return [v for v, _ in counts.most_common(n)]


def derive_preferences(products: Sequence[Product], top_n: int = PREFERENCE_TOP_N) -> UserPreferences:
    """
    Preference profile from the products a user interacted with:
    the most frequent categories and brands, and the observed price band.
    """
    if not products:
        return UserPreferences()
    prices = [p.price for p in products]
    return UserPreferences(
        categories=_most_common((p.category_id for p in products), top_n),
        brands=_most_common((p.brand for p in products), top_n),
        price_range=(min(prices), max(prices)),
    )


def personalization_score(product: Product, prefs: UserPreferences) -> float:
    score = 0.0
    if product.category_id in prefs.categories:
        score += PERS_CATEGORY_WEIGHT
    if product.brand in prefs.brands:
        score += PERS_BRAND_WEIGHT
    if prefs.price_range and prefs.price_range[0] <= product.price <= prefs.price_range[1]:
        score += PERS_PRICE_WEIGHT
    return score


def personalization_reason(product: Product, prefs: UserPreferences) -> str:
    if product.category_id in prefs.categories:
        return "Matches your interests"
    if product.brand in prefs.brands:
        return "From your favorite brands"
    return "Recommended for you"


def score_personalized(candidates: Sequence[Product], prefs: UserPreferences) -> List[ProductRecommendation]:
    recs: List[ProductRecommendation] = []
    for candidate in candidates:
        score = personalization_score(candidate, prefs)
        if score > PERSONALIZATION_MIN_SCORE:
            recs.append(make_recommendation(candidate.product_id, score, personalization_reason(candidate, prefs), KIND_PERSONALIZED))
    return top_k(recs, PERSONALIZATION_TOP_K)


async def personalized_recommendations(
    product_repo,
    *,
    history_ids: Sequence[str],
    candidates: Sequence[Product],
) -> List[ProductRecommendation]:
    """Resolve the history products, derive the profile, score the pool."""
    if not history_ids or not candidates:
        return []
    products = await product_repo.get_many_by_product_ids(list(dict.fromkeys(history_ids)))
    prefs = derive_preferences(products)
    recs = score_personalized(candidates, prefs)
    logger.info(
        "personalized history=%s categories=%s brands=%s price_range=%s items=%s",
        len(products), prefs.categories, prefs.brands, prefs.price_range, len(recs),
    )
    return recs
