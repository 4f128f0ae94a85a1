from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase


async def get_user(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    """Get user by ID (password hash excluded)"""
    return await db.users.find_one({"user_id": user_id}, {"_id": 0, "password_hash": 0})

async def increment_completed(db: AsyncIOMotorDatabase, user_id: str):
    """Bump the user's completed-simulation counter"""
    await db.users.update_one(
        {"user_id": user_id},
        {"$inc": {"stats.simulations_completed": 1}}
    )
