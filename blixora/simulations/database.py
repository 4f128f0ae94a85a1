import logging
import re
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from blixora.database import generate_id

logger = logging.getLogger(__name__)

EMPTY_METRICS = {
    "enrollments": 0,
    "completions": 0,
    "average_rating": 0.0,
    "total_reviews": 0,
    "average_score": 0
}

# ==================== SIMULATION CRUD ====================

async def create_simulation(db: AsyncIOMotorDatabase, data: dict, creator_id: str) -> dict:
    """Create new simulation with zeroed metrics"""
    now = datetime.utcnow()
    simulation = {
        "simulation_id": generate_id("SIM"),
        "title": data["title"],
        "description": data["description"],
        "category": data["category"],
        "level": data["level"],
        "duration": data["duration"],
        "content": data.get("content", {}),
        "media": data.get("media", {}),
        "pricing": data.get("pricing", {"type": "free", "price": 0}),
        "tags": data.get("tags", []),
        "metrics": dict(EMPTY_METRICS),
        "is_active": True,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now
    }

    await db.simulations.insert_one(simulation)
    simulation.pop("_id", None)
    return simulation

async def get_simulation(db: AsyncIOMotorDatabase, simulation_id: str, active_only: bool = True) -> Optional[dict]:
    """Get simulation by ID (inactive ones are hidden unless asked for)"""
    query = {"simulation_id": simulation_id}
    if active_only:
        query["is_active"] = True
    return await db.simulations.find_one(query)

async def update_simulation(db: AsyncIOMotorDatabase, simulation_id: str, updates: dict) -> Optional[dict]:
    """Update editable simulation fields. Metrics are never accepted here."""
    updates = {k: v for k, v in updates.items() if k != "metrics"}
    updates["updated_at"] = datetime.utcnow()
    result = await db.simulations.update_one(
        {"simulation_id": simulation_id, "is_active": True},
        {"$set": updates}
    )
    if result.matched_count == 0:
        return None
    return await get_simulation(db, simulation_id)

async def deactivate_simulation(db: AsyncIOMotorDatabase, simulation_id: str) -> bool:
    """Soft delete"""
    result = await db.simulations.update_one(
        {"simulation_id": simulation_id, "is_active": True},
        {"$set": {"is_active": False, "updated_at": datetime.utcnow()}}
    )
    return result.modified_count > 0

def build_simulation_query(filters: dict) -> dict:
    query = {"is_active": True}
    if filters.get("category"):
        query["category"] = filters["category"]
    if filters.get("level"):
        query["level"] = filters["level"]
    if filters.get("pricing"):
        query["pricing.type"] = filters["pricing"]
    if filters.get("search"):
        pattern = re.escape(filters["search"])
        query["$or"] = [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
            {"tags": {"$regex": pattern, "$options": "i"}}
        ]
    return query

async def list_simulations(db: AsyncIOMotorDatabase, filters: dict, skip: int = 0, limit: int = 12) -> List[dict]:
    """List active simulations with filters, newest first"""
    query = build_simulation_query(filters)
    cursor = db.simulations.find(query).sort("created_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)

async def count_simulations(db: AsyncIOMotorDatabase, filters: dict) -> int:
    return await db.simulations.count_documents(build_simulation_query(filters))

def completion_rate(simulation: dict) -> float:
    """Completions as a percentage of enrollments, one decimal"""
    metrics = simulation.get("metrics", {})
    enrollments = metrics.get("enrollments", 0)
    if enrollments <= 0:
        return 0.0
    return round(metrics.get("completions", 0) / enrollments * 100, 1)

def module_count(simulation: Optional[dict]) -> int:
    if not simulation:
        return 0
    return len((simulation.get("content") or {}).get("modules") or [])

# ==================== METRICS ROLLUP ====================

async def increment_metric(db: AsyncIOMotorDatabase, simulation_id: str, field: str, delta: int = 1):
    """Atomic $inc on a metrics counter; never read-modify-write"""
    await db.simulations.update_one(
        {"simulation_id": simulation_id},
        {"$inc": {f"metrics.{field}": delta}}
    )

async def decrement_enrollments(db: AsyncIOMotorDatabase, simulation_id: str) -> bool:
    """
    Decrement metrics.enrollments, clamped at zero.

    Returns False when the counter was already zero, which means the
    enroll-time increment never landed. Callers log it.
    """
    result = await db.simulations.update_one(
        {"simulation_id": simulation_id, "metrics.enrollments": {"$gt": 0}},
        {"$inc": {"metrics.enrollments": -1}}
    )
    return result.modified_count > 0

async def set_rating_metrics(db: AsyncIOMotorDatabase, simulation_id: str, average_rating: float, total_reviews: int):
    await db.simulations.update_one(
        {"simulation_id": simulation_id},
        {"$set": {
            "metrics.average_rating": average_rating,
            "metrics.total_reviews": total_reviews
        }}
    )

async def set_average_score(db: AsyncIOMotorDatabase, simulation_id: str, average_score: int):
    await db.simulations.update_one(
        {"simulation_id": simulation_id},
        {"$set": {"metrics.average_score": average_score}}
    )
