import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Dict, Iterable, List, Optional, Set, Tuple
from reco_engine.core.config import Settings, get_settings
from reco_engine.domain.models.interaction import UserBehavior
from reco_engine.domain.models.product import Product
from reco_engine.domain.models.recommendation import (
    ProductRecommendation,
    RecommendationContext,
    RecommendationMetadata,
    RecommendationResult,
)
from reco_engine.domain.services.candidates_svc import build_candidate_pool
from reco_engine.domain.services.collaborative_svc import collaborative_recommendations
from reco_engine.domain.services.constants import (
    ALGORITHM_ERROR,
    ALGORITHM_NAME,
    PURCHASE_HISTORY_LIMIT,
    VIEW_HISTORY_LIMIT,
)
from reco_engine.domain.services.personalization_svc import personalized_recommendations
from reco_engine.domain.services.scoring import top_k
from reco_engine.domain.services.similarity_svc import score_similar
from reco_engine.domain.services.trending_svc import trending_recommendations
from reco_engine.domain.services.xsell_svc import complement_pairs, score_cross_sell, score_up_sell

logger = logging.getLogger(__name__)

# Strong references to fire-and-forget telemetry writes until they finish
_background_tasks: Set[asyncio.Task] = set()


def new_session_id() -> str:
    return f"rec_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _join(*aws: Awaitable) -> list:
    """
    Run awaitables concurrently and return their results in order.
    If one fails, the others are cancelled and awaited before the error
    is re-raised, so nothing outlives the call.
    """
    tasks = [asyncio.ensure_future(a) for a in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for t in tasks:
            if not t.done():
                t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def aggregate(
    recs: Iterable[ProductRecommendation],
    limit: int,
    exclude: Optional[str] = None,
) -> List[ProductRecommendation]:
    """
    Merge all scorer outputs: one entry per product (highest score wins,
    earlier strategy on ties), `exclude` dropped, sorted by score, truncated.
    """
    best: Dict[str, ProductRecommendation] = {}
    for r in recs:
        if r.product_id == exclude:
            continue
        current = best.get(r.product_id)
        if current is None or r.score > current.score:
            best[r.product_id] = r
    return top_k(best.values(), limit)


def error_result(session_id: str, user_id: Optional[str] = None) -> RecommendationResult:
    return RecommendationResult(
        products=[],
        recommendations=[],
        metadata=RecommendationMetadata(
            algorithm=ALGORITHM_ERROR,
            processed_at=_now_iso(),
            total_analyzed=0,
            user_id=user_id,
            session_id=session_id,
        ),
    )


class RecommendationEngine:
    """
    Hybrid recommender: content similarity, collaborative filtering,
    trending, personalization, cross-sell and up-sell over one candidate pool.

    Stateless apart from its collaborators; build one per request or share it.
    Recommendations are best effort: any repository failure yields an empty,
    error-tagged result instead of an exception.
    """

    def __init__(
        self,
        product_repo,
        interaction_repo,
        telemetry_repo=None,
        *,
        redis=None,
        settings: Optional[Settings] = None,
    ):
        self.products = product_repo
        self.interactions = interaction_repo
        self.telemetry = telemetry_repo
        self.redis = redis
        self.settings = settings or get_settings()
        self.pairs = complement_pairs(self.settings.extra_complement_pairs)
        self._pending: Set[asyncio.Task] = set()

    # ---- public entry point -------------------------------------------------

    async def generate_recommendations(self, context: RecommendationContext) -> RecommendationResult:
        t0 = time.perf_counter()
        session_id = new_session_id()
        logger.info(
            "recommend start session_id=%s user_id=%s product_id=%s category=%s limit=%s",
            session_id, context.user_id, context.current_product_id, context.category, context.limit,
        )

        try:
            # ---- 1) Inputs, fetched concurrently ----------------------------
            behavior, candidates, anchor = await _join(
                self._user_behavior(context.user_id),
                build_candidate_pool(self.products, context, limit=self.settings.candidate_pool_limit),
                self._anchor(context.current_product_id),
            )

            # ---- 2) Scorers --------------------------------------------------
            recs = await self._run_scorers(context, behavior, candidates, anchor)

            # ---- 3) Merge, rank, truncate -----------------------------------
            limit = min(self.settings.max_recommendations, context.limit)
            ranked = aggregate(recs, limit, exclude=context.current_product_id)

            # ---- 4) Resolve full products, preserving rank order ------------
            products, ranked = await self._resolve(ranked)
        except Exception:
            logger.exception("recommend failed session_id=%s; returning empty result", session_id)
            return error_result(session_id, context.user_id)

        result = RecommendationResult(
            products=products,
            recommendations=ranked,
            metadata=RecommendationMetadata(
                algorithm=ALGORITHM_NAME,
                processed_at=_now_iso(),
                total_analyzed=len(candidates),
                user_id=context.user_id,
                session_id=session_id,
            ),
        )

        # ---- 5) Telemetry (fire-and-forget) --------------------------------
        self._log_in_background(context, ranked, session_id)

        logger.info(
            "recommend done session_id=%s analyzed=%s scored=%s items=%s total_time=%.3fs",
            session_id, len(candidates), len(recs), len(ranked), time.perf_counter() - t0,
        )
        return result

    async def drain_telemetry(self) -> None:
        """Wait for this engine's pending telemetry writes (tests, shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ---- inputs --------------------------------------------------------------

    async def _user_behavior(self, user_id: Optional[str]) -> UserBehavior:
        if not user_id:
            return UserBehavior()
        views, purchases = await _join(
            self.interactions.list_user_interactions(user_id, "view", VIEW_HISTORY_LIMIT),
            self.interactions.list_user_interactions(user_id, "purchase", PURCHASE_HISTORY_LIMIT),
        )
        return UserBehavior(views=views, purchases=purchases)

    async def _anchor(self, product_id: Optional[str]) -> Optional[Product]:
        if not product_id:
            return None
        anchor = await self.products.get_by_product_id(product_id)
        if anchor is None:
            logger.info("anchor product not found product_id=%s", product_id)
        return anchor

    # ---- scoring -------------------------------------------------------------

    async def _run_scorers(
        self,
        context: RecommendationContext,
        behavior: UserBehavior,
        candidates: List[Product],
        anchor: Optional[Product],
    ) -> List[ProductRecommendation]:
        recs: List[ProductRecommendation] = []

        # Anchor-based scorers are pure; run them inline
        if context.current_product_id:
            recs += score_similar(anchor, candidates)

        purchased = [r.product_id for r in behavior.purchases] + list(context.purchased_products)
        viewed = [r.product_id for r in behavior.views] + list(context.viewed_products)
        liked = set(purchased) | {r.product_id for r in behavior.views if r.rating and r.rating >= 4}

        jobs: List[Tuple[str, Awaitable[List[ProductRecommendation]]]] = []
        if context.user_id and liked:
            jobs.append(("collaborative", collaborative_recommendations(
                self.interactions, user_id=context.user_id, liked=liked, candidates=candidates,
            )))
        jobs.append(("trending", trending_recommendations(
            self.interactions,
            candidates,
            self.redis,
            window_days=self.settings.trending_window_days,
            limit=self.settings.trending_counters_limit,
            ttl=self.settings.trending_cache_ttl,
        )))
        if context.user_id and (purchased or viewed):
            jobs.append(("personalized", personalized_recommendations(
                self.products, history_ids=purchased or viewed, candidates=candidates,
            )))

        results = await _join(*(self._with_deadline(name, job) for name, job in jobs))
        for contribution in results:
            recs += contribution

        if context.current_product_id:
            recs += score_cross_sell(anchor, candidates, self.pairs)
            recs += score_up_sell(anchor, candidates)
        return recs

    async def _with_deadline(self, name: str, job: Awaitable[List[ProductRecommendation]]) -> List[ProductRecommendation]:
        timeout = self.settings.scorer_timeout_s
        try:
            return await asyncio.wait_for(job, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("scorer %s timed out after %.2fs; skipping its contribution", name, timeout)
            return []

    # ---- output --------------------------------------------------------------

    async def _resolve(
        self, ranked: List[ProductRecommendation]
    ) -> Tuple[List[Product], List[ProductRecommendation]]:
        if not ranked:
            return [], []
        found = await self.products.get_many_by_product_ids([r.product_id for r in ranked])
        by_id = {p.product_id: p for p in found}
        kept = [r for r in ranked if r.product_id in by_id]
        if len(kept) != len(ranked):
            logger.warning("resolve dropped %s recommendations missing from catalog", len(ranked) - len(kept))
        return [by_id[r.product_id] for r in kept], kept

    def _log_in_background(
        self, context: RecommendationContext, recs: List[ProductRecommendation], session_id: str
    ) -> None:
        if self.telemetry is None:
            return
        task = asyncio.create_task(self._log(context, recs, session_id))
        for bucket in (_background_tasks, self._pending):
            bucket.add(task)
            task.add_done_callback(bucket.discard)

    async def _log(self, context: RecommendationContext, recs: List[ProductRecommendation], session_id: str) -> None:
        try:
            await self.telemetry.log_recommendations(
                context=context,
                recommendations=recs,
                session_id=session_id,
                algorithm=ALGORITHM_NAME,
            )
            logger.debug("telemetry logged session_id=%s items=%s", session_id, len(recs))
        except Exception as e:
            logger.warning("telemetry write failed session_id=%s err=%s", session_id, e)
