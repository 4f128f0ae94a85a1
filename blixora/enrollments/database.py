from datetime import datetime
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from blixora.enrollments.models import EnrollmentStatus

# ==================== ENROLLMENT CRUD ====================

async def insert_enrollment(db: AsyncIOMotorDatabase, enrollment: dict) -> dict:
    """
    Insert a new enrollment document.
    Raises pymongo DuplicateKeyError if (user_id, simulation_id) exists.
    """
    await db.enrollments.insert_one(enrollment)
    enrollment.pop("_id", None)
    return enrollment

async def get_enrollment(db: AsyncIOMotorDatabase, enrollment_id: str) -> Optional[dict]:
    """Get enrollment by ID"""
    return await db.enrollments.find_one({"enrollment_id": enrollment_id}, {"_id": 0})

async def find_user_enrollment(db: AsyncIOMotorDatabase, user_id: str, simulation_id: str) -> Optional[dict]:
    """Get enrollment for a (user, simulation) pair, any status"""
    return await db.enrollments.find_one(
        {"user_id": user_id, "simulation_id": simulation_id},
        {"_id": 0}
    )

async def save_enrollment(db: AsyncIOMotorDatabase, enrollment: dict, expected_version: int) -> bool:
    """
    Write the enrollment back if nobody else wrote it since it was read.

    The stored version must still equal expected_version; on success the
    version is bumped and True is returned.
    """
    updates = {k: v for k, v in enrollment.items() if k not in ("_id", "enrollment_id", "version")}
    updates["updated_at"] = datetime.utcnow()
    updates["version"] = expected_version + 1

    result = await db.enrollments.update_one(
        {"enrollment_id": enrollment["enrollment_id"], "version": expected_version},
        {"$set": updates}
    )
    if result.matched_count == 0:
        return False

    enrollment.update(updates)
    return True

def build_user_query(user_id: str, status: Optional[str] = None) -> dict:
    query = {"user_id": user_id}
    if status:
        query["status"] = status
    return query

async def list_user_enrollments(
    db: AsyncIOMotorDatabase,
    user_id: str,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 10
) -> List[dict]:
    """Get a page of enrollments for user, newest first"""
    cursor = db.enrollments.find(build_user_query(user_id, status), {"_id": 0}) \
        .sort("enrolled_at", -1) \
        .skip(skip) \
        .limit(limit)
    return await cursor.to_list(length=limit)

async def count_user_enrollments(db: AsyncIOMotorDatabase, user_id: str, status: Optional[str] = None) -> int:
    return await db.enrollments.count_documents(build_user_query(user_id, status))

async def has_enrollment(db: AsyncIOMotorDatabase, user_id: str, simulation_id: str) -> bool:
    return await db.enrollments.count_documents(
        {"user_id": user_id, "simulation_id": simulation_id}
    ) > 0

# ==================== ROLLUP QUERIES ====================

async def rating_summary(db: AsyncIOMotorDatabase, simulation_id: str) -> Tuple[Optional[float], int]:
    """
    Mean and count of feedback ratings across every enrollment of a simulation.
    Full recompute; returns (None, 0) when nobody has rated yet.
    """
    pipeline = [
        {"$match": {"simulation_id": simulation_id, "feedback.rating": {"$ne": None}}},
        {"$group": {
            "_id": None,
            "average": {"$avg": "$feedback.rating"},
            "count": {"$sum": 1}
        }}
    ]
    results = await db.enrollments.aggregate(pipeline).to_list(length=1)
    if not results:
        return None, 0
    return results[0]["average"], results[0]["count"]

async def score_summary(db: AsyncIOMotorDatabase, simulation_id: str) -> Optional[float]:
    """Mean performance score over completed enrollments that carry one"""
    pipeline = [
        {"$match": {
            "simulation_id": simulation_id,
            "status": EnrollmentStatus.COMPLETED.value,
            "performance.score": {"$ne": None}
        }},
        {"$group": {"_id": None, "average": {"$avg": "$performance.score"}}}
    ]
    results = await db.enrollments.aggregate(pipeline).to_list(length=1)
    if not results:
        return None
    return results[0]["average"]
