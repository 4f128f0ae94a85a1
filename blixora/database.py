import logging
import uuid
from typing import Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from blixora import config

logger = logging.getLogger(__name__)


def connect(url: Optional[str] = None, db_name: Optional[str] = None) -> Tuple[AsyncIOMotorClient, AsyncIOMotorDatabase]:
    """
    Build the Motor client and database handle.
    Called once on app startup; the handle is stored on app.state.
    """
    client = AsyncIOMotorClient(url or config.MONGO_URL)
    db = client[db_name or config.MONGO_DB_NAME]
    logger.info("MongoDB client created for database %s", db.name)
    return client, db


def close(client: Optional[AsyncIOMotorClient]):
    """Close the Motor client on shutdown"""
    if client is not None:
        client.close()
        logger.info("MongoDB client closed")


def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix, e.g. ENR_3F2A9C01B4D7"""
    return f"{prefix}_{uuid.uuid4().hex[:12].upper()}"


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc


def serialize_many(docs: list) -> list:
    return [serialize_mongo(doc) for doc in docs]


# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Create MongoDB indexes for all collections
    Called during application startup
    """
    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("email", unique=True)

    # Simulations
    await db.simulations.create_index("simulation_id", unique=True)
    await db.simulations.create_index("category")
    await db.simulations.create_index("level")
    await db.simulations.create_index("pricing.type")
    await db.simulations.create_index("is_active")
    await db.simulations.create_index([("created_at", -1)])
    await db.simulations.create_index([("metrics.average_rating", -1)])

    # Enrollments (one per user per simulation)
    await db.enrollments.create_index("enrollment_id", unique=True)
    await db.enrollments.create_index([("user_id", 1), ("simulation_id", 1)], unique=True)
    await db.enrollments.create_index("user_id")
    await db.enrollments.create_index("simulation_id")
    await db.enrollments.create_index("status")
    await db.enrollments.create_index([("enrolled_at", -1)])
    await db.enrollments.create_index([("completed_at", -1)])

    logger.info("Database indexes created")
