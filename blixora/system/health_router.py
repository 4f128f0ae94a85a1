import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from blixora import config
from blixora.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health")
async def health(db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Liveness plus a database ping.
    If this handler runs the API is up; the database may still be DOWN.
    """
    database_status = "UP"
    try:
        await db.command("ping")
    except Exception as e:
        logger.warning("Health check database ping failed: %s", e)
        database_status = "DOWN"

    return {
        "status": "OK" if database_status == "UP" else "DEGRADED",
        "message": "Blixora Labs API is running",
        "timestamp": datetime.utcnow(),
        "version": config.VERSION,
        "services": {
            "api": "UP",
            "database": database_status
        }
    }
