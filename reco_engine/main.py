from fastapi import FastAPI
from reco_engine.core.config import get_settings
from reco_engine.core.lifespan import lifespan
from reco_engine.api.v1.routers.health import router as health_router
from reco_engine.api.v1.routers.recommendations import router as recommendations_router
from reco_engine.api.v1.routers.users import router as users_router
from reco_engine.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import logging, os

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://admin.example.com"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(recommendations_router, prefix=settings.api_prefix)   # hybrid engine
app.include_router(users_router, prefix=settings.api_prefix)             # interactions + history
