# reco_engine/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from reco_engine.db import mongo, redis as r
from reco_engine.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo holds the catalog and the interaction log: required
    try:
        await mongo.connect()
        logger.info("Mongo connected db=%s", settings.MONGO_DB)
    except Exception as e:
        logger.error("Mongo connection failed: %s", e)
        raise

    # Redis only backs the trending counters cache: optional
    if settings.REDIS_URL:
        await r.connect()
    else:
        logger.warning("No REDIS_URL provided, trending counters will not be cached")

    yield

    # --- Shutdown ---
    try:
        await r.disconnect()
    except Exception as e:
        logger.warning("Redis disconnect failed: %s", e)

    await mongo.disconnect()
    logger.info("Mongo disconnected")
