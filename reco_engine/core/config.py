from functools import lru_cache
from typing import List, Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "HybridRecommendationEngine"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo (catalog, interactions, recommendation logs)
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "reco"

    # Redis (optional; empty disables the trending counters cache)
    REDIS_URL: str = ""

    # Engine
    candidate_pool_limit: int = 100          # products scored per call
    max_recommendations: int = 20            # global cap on the final list
    scorer_timeout_s: float = 2.0            # per-scorer deadline
    trending_window_days: int = 7
    trending_counters_limit: int = 50
    trending_cache_ttl: int = 5 * 60         # 5 minutes

    # Extra cross-sell complement pairs, "anchor_type:candidate_type"
    extra_complement_pairs: List[str] = []

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
