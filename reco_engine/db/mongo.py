# reco_engine/db/mongo.py
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from reco_engine.core.config import get_settings
import certifi

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


def _new_client(uri: str) -> AsyncIOMotorClient:
    kwargs = dict(
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=6000,
        connectTimeoutMS=6000,
    )
    # SRV (Atlas) implies TLS; ship the certifi bundle for containers
    if uri.startswith("mongodb+srv://"):
        kwargs.update(tls=True, tlsCAFile=certifi.where())
    return AsyncIOMotorClient(uri, **kwargs)


async def connect():
    """
    Create the Motor client and ping once.
    A failed ping is not fatal: the client is lazy and the first real query
    retries the connection. Recommendation calls degrade on their own.
    """
    global _client, _db
    settings = get_settings()

    _client = _new_client(settings.MONGO_URI)
    _db = _client[settings.MONGO_DB]
    try:
        await _client.admin.command("ping")
        logger.info("Mongo ping ok")
    except Exception as e:
        logger.warning("Mongo ping at startup failed, connecting lazily: %s", e)


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
