# reco_engine/domain/services/xsell_svc.py
import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence
from reco_engine.domain.models.product import Product
from reco_engine.domain.models.recommendation import ProductRecommendation
from reco_engine.domain.services.constants import (
    CROSS_SELL_BASE,
    CROSS_SELL_MIN_SCORE,
    CROSS_SELL_PAIR_BONUS,
    CROSS_SELL_TOP_K,
    KIND_CROSS_SELL,
    KIND_UP_SELL,
    UP_SELL_MAX_PRICE_SCORE,
    UP_SELL_MIN_SCORE,
    UP_SELL_SPEC_BONUS,
    UP_SELL_TOP_K,
)
from reco_engine.domain.services.scoring import make_recommendation, top_k

logger = logging.getLogger(__name__)

# anchor product_type -> candidate product_types that complement it
COMPLEMENTARY_TYPES: Mapping[str, FrozenSet[str]] = {
    "fertilizer": frozenset({"pesticide"}),
    "pesticide": frozenset({"fertilizer"}),
    "seed": frozenset({"fertilizer"}),
}


def complement_pairs(extra: Iterable[str] = ()) -> Dict[str, FrozenSet[str]]:
    """
    COMPLEMENTARY_TYPES extended with "anchor:candidate" strings (settings).
    Malformed entries are skipped with a warning.
    """
    pairs = {k: set(v) for k, v in COMPLEMENTARY_TYPES.items()}
    for raw in extra:
        anchor, sep, candidate = raw.partition(":")
        anchor, candidate = anchor.strip().lower(), candidate.strip().lower()
        if not sep or not anchor or not candidate:
            logger.warning("ignoring malformed complement pair %r", raw)
            continue
        pairs.setdefault(anchor, set()).add(candidate)
    return {k: frozenset(v) for k, v in pairs.items()}


def _type(p: Product) -> Optional[str]:
    return p.product_type.lower() if p.product_type else None


def cross_sell_score(candidate: Product, anchor: Product, pairs: Mapping[str, FrozenSet[str]] = COMPLEMENTARY_TYPES) -> float:
    score = CROSS_SELL_BASE
    anchor_type, candidate_type = _type(anchor), _type(candidate)
    if anchor_type and candidate_type in pairs.get(anchor_type, ()):
        score += CROSS_SELL_PAIR_BONUS
    return score


def score_cross_sell(
    anchor: Optional[Product],
    candidates: Sequence[Product],
    pairs: Mapping[str, FrozenSet[str]] = COMPLEMENTARY_TYPES,
) -> List[ProductRecommendation]:
    if anchor is None or not anchor.category_id:
        return []

    recs: List[ProductRecommendation] = []
    for candidate in candidates:
        if candidate.product_id == anchor.product_id or candidate.category_id != anchor.category_id:
            continue
        score = cross_sell_score(candidate, anchor, pairs)
        if score > CROSS_SELL_MIN_SCORE:
            recs.append(make_recommendation(candidate.product_id, score, "Complements this item", KIND_CROSS_SELL))
    return top_k(recs, CROSS_SELL_TOP_K)


def comparable_specs(a: Product, b: Product) -> bool:
    """Both carry specifications and share at least one key."""
    return bool(a.specifications) and bool(b.specifications) and bool(a.specifications.keys() & b.specifications.keys())


def up_sell_score(candidate: Product, anchor: Product) -> float:
    if anchor.price <= 0:
        score = UP_SELL_MAX_PRICE_SCORE
    else:
        score = min((candidate.price / anchor.price - 1) * 0.5, UP_SELL_MAX_PRICE_SCORE)
    if comparable_specs(candidate, anchor):
        score += UP_SELL_SPEC_BONUS
    return score


def score_up_sell(anchor: Optional[Product], candidates: Sequence[Product]) -> List[ProductRecommendation]:
    if anchor is None:
        return []

    recs: List[ProductRecommendation] = []
    for candidate in candidates:
        if candidate.product_id == anchor.product_id:
            continue
        if candidate.category_id != anchor.category_id or candidate.price <= anchor.price:
            continue
        score = up_sell_score(candidate, anchor)
        if score > UP_SELL_MIN_SCORE:
            recs.append(make_recommendation(candidate.product_id, score, "Premium version with better features", KIND_UP_SELL))
    return top_k(recs, UP_SELL_TOP_K)
