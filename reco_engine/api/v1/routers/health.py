# reco_engine/api/v1/routers/health.py
import time
from fastapi import APIRouter
from reco_engine.core.config import get_settings
from reco_engine.db import mongo
from reco_engine.db.redis import get_redis  # returns Redis instance or None

router = APIRouter(tags=["health"])
START_TIME = time.time()


@router.get("/health")
async def health():
    """
    Tolerant health check:
    - Mongo ping (catalog + interactions, required)
    - Redis ping, or 'skipped' when the counters cache is not configured
    """
    settings = get_settings()
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA,
        "uptime_seconds": int(time.time() - START_TIME),
    }

    # --- Mongo ---
    try:
        db = mongo.get_db()
        await db.command("ping")
        checks["mongodb"] = "ok"
    except Exception as e:
        checks["mongodb"] = f"error: {e}"

    # --- Redis (optional) ---
    try:
        r = get_redis()
        if r:
            await r.ping()
            checks["redis"] = "ok"
        else:
            checks["redis"] = "skipped"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    status = "ok" if all(checks.get(k) in ("ok", "skipped") for k in ("mongodb", "redis")) else "error"
    return {"status": status, "checks": checks, "timestamp": int(time.time())}
