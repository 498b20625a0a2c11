from typing import Iterable, List
from reco_engine.domain.models.recommendation import ProductRecommendation
from reco_engine.domain.services.constants import CONFIDENCE_FACTORS, DEFAULT_CONFIDENCE_FACTOR


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def confidence_for(score: float, kind: str) -> float:
    return clamp(score * CONFIDENCE_FACTORS.get(kind, DEFAULT_CONFIDENCE_FACTOR))


def make_recommendation(product_id: str, score: float, reason: str, kind: str) -> ProductRecommendation:
    """Build a recommendation with score and confidence clamped into [0, 1]."""
    score = clamp(score)
    return ProductRecommendation(
        product_id=product_id,
        score=score,
        reason=reason,
        type=kind,
        confidence=confidence_for(score, kind),
    )


def top_k(recs: Iterable[ProductRecommendation], k: int) -> List[ProductRecommendation]:
    # sorted() is stable: equal scores keep candidate order
    return sorted(recs, key=lambda r: r.score, reverse=True)[:k]
