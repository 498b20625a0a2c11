import logging
import time
from collections import Counter
from typing import AbstractSet, Dict, List, Sequence, Set
from reco_engine.domain.models.product import Product
from reco_engine.domain.models.recommendation import ProductRecommendation
from reco_engine.domain.services.constants import (
    COLLABORATIVE_MIN_SCORE,
    COLLABORATIVE_TOP_K,
    KIND_COLLABORATIVE,
    NEIGHBOUR_LIMIT,
    USER_SIMILARITY_THRESHOLD,
)
from reco_engine.domain.services.scoring import make_recommendation, top_k

logger = logging.getLogger(__name__)


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def select_similar_users(
    liked: AbstractSet[str],
    neighbours: Dict[str, Set[str]],
    threshold: float = USER_SIMILARITY_THRESHOLD,
) -> Dict[str, Set[str]]:
    """Neighbours whose liked-product sets are Jaccard-similar enough to `liked`."""
    return {uid: items for uid, items in neighbours.items() if jaccard(liked, items) >= threshold}


def score_collaborative(
    liked: AbstractSet[str],
    similar_users: Dict[str, Set[str]],
    candidates: Sequence[Product],
) -> List[ProductRecommendation]:
    """
    score = share of similar users who liked the product.
    Products the user already liked and products outside the pool are skipped.
    """
    if not similar_users:
        return []

    n_users = len(similar_users)
    votes: Counter = Counter()
    for items in similar_users.values():
        votes.update(items)

    recs: List[ProductRecommendation] = []
    for candidate in candidates:
        pid = candidate.product_id
        if pid in liked or pid not in votes:
            continue
        score = votes[pid] / n_users
        if score > COLLABORATIVE_MIN_SCORE:
            reason = f"Popular with similar customers ({round(score * 100)}% match)"
            recs.append(make_recommendation(pid, score, reason, KIND_COLLABORATIVE))
    return top_k(recs, COLLABORATIVE_TOP_K)


async def collaborative_recommendations(
    interaction_repo,
    *,
    user_id: str,
    liked: AbstractSet[str],
    candidates: Sequence[Product],
) -> List[ProductRecommendation]:
    """
    User-based collaborative filtering:
    neighbours who liked any of the user's products → Jaccard filter → vote.
    """
    if not liked or not candidates:
        return []

    t0 = time.perf_counter()
    neighbour_ids = await interaction_repo.find_co_interactors(liked, exclude_user_id=user_id, limit=NEIGHBOUR_LIMIT)
    if not neighbour_ids:
        logger.info("collaborative user_id=%s no neighbours", user_id)
        return []

    neighbours = await interaction_repo.get_liked_products(neighbour_ids)
    similar = select_similar_users(liked, neighbours)
    recs = score_collaborative(liked, similar, candidates)
    logger.info(
        "collaborative user_id=%s neighbours=%s similar=%s items=%s time=%.3fs",
        user_id, len(neighbours), len(similar), len(recs), time.perf_counter() - t0,
    )
    return recs
