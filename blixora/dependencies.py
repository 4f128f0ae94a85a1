from fastapi import Depends, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from blixora.auth.auth_utils import verify_token
from blixora.auth.database import get_user
from blixora.enrollments.lifecycle import EnrollmentLifecycle


class UserContext:
    """
    Authenticated caller, built from the users collection
    """
    def __init__(self, user: dict):
        self.user_id = user["user_id"]
        self.name = user.get("name")
        self.email = user.get("email")
        self.role = user.get("role", "user")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database handle created on startup and kept on app.state"""
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="Database not initialised")
    return db

async def get_lifecycle(db: AsyncIOMotorDatabase = Depends(get_db)) -> EnrollmentLifecycle:
    return EnrollmentLifecycle(db)

async def get_current_user(
    payload: dict = Depends(verify_token),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> UserContext:
    """
    Dependency: resolves the token subject to an active user

    Raises:
        401: Unknown or deactivated user
    """
    user = await get_user(db, payload["sub"])

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Account is deactivated. Please contact support.")

    return UserContext(user)

async def require_admin(user: UserContext = Depends(get_current_user)) -> UserContext:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
