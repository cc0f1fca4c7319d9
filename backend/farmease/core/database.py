import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from farmease.core.config import settings

logger = logging.getLogger(__name__)

# Global MongoDB client
_client: AsyncIOMotorClient = None
_database: AsyncIOMotorDatabase = None


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create the indexes the cart backend relies on.

    `client_storage` holds one document per owner and key; the unique index
    keeps concurrent upserts from writing two snapshots for the same cart.
    """
    await db.client_storage.create_index(
        [("owner_id", ASCENDING), ("key", ASCENDING)],
        unique=True,
        name="owner_key_unique"
    )
    logger.info("Ensured client_storage indexes")


async def connect_to_mongo():
    """Connect to MongoDB and prepare the collections the cart writes to."""
    global _client, _database
    _client = AsyncIOMotorClient(settings.MONGODB_URI)
    _database = _client[settings.MONGODB_DB_NAME]
    logger.info(f"Connected to MongoDB: {settings.MONGODB_DB_NAME}")
    await ensure_indexes(_database)


async def close_mongo_connection():
    """Close MongoDB connection."""
    global _client, _database
    if _client:
        _client.close()
        _client = None
        _database = None
        logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Get MongoDB database instance."""
    return _database
