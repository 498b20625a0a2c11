# reco_engine/api/deps.py
from fastapi import Depends
from reco_engine.core.config import get_settings
from reco_engine.db.mongo import get_db
from reco_engine.db.redis import get_redis
from reco_engine.domain.repositories.interaction_repo import InteractionRepo
from reco_engine.domain.repositories.product_repo import ProductRepo
from reco_engine.domain.repositories.telemetry_repo import TelemetryRepo
from reco_engine.domain.services.engine_svc import RecommendationEngine

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    return db

# Dependency for injecting the Redis client (or None) into endpoints/services
def redis_dep():
    return get_redis()

def interaction_repo(db = Depends(mongo_db)) -> InteractionRepo:
    return InteractionRepo(db)

def telemetry_repo(db = Depends(mongo_db)) -> TelemetryRepo:
    return TelemetryRepo(db)

# One engine per request, wired to the shared Motor/Redis clients
def get_engine(
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
) -> RecommendationEngine:
    return RecommendationEngine(
        ProductRepo(db),
        InteractionRepo(db),
        TelemetryRepo(db),
        redis=redis,
        settings=get_settings(),
    )
