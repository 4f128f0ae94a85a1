"""
ENROLLMENT ROUTER
File: blixora/enrollments/enrollment_router.py

Thin handlers over EnrollmentLifecycle:
- Enroll / withdraw
- Progress, completion and feedback
- Owner (or admin) access only; lifecycle errors are rendered by the app
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from blixora import config
from blixora.dependencies import UserContext, get_current_user, get_db, get_lifecycle
from blixora.enrollments import database as enrollments_db
from blixora.enrollments.lifecycle import EnrollmentLifecycle
from blixora.enrollments.models import (
    EnrollmentCreate, EnrollmentStatus, FeedbackCreate, ProgressUpdate
)
from blixora.simulations.database import get_simulation

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


def simulation_summary(simulation: Optional[dict]) -> Optional[dict]:
    if not simulation:
        return None
    return {
        "simulation_id": simulation["simulation_id"],
        "title": simulation["title"],
        "description": simulation["description"],
        "category": simulation["category"],
        "level": simulation["level"],
        "duration": simulation["duration"]
    }


# ==================== ENROLLMENT ENDPOINTS ====================

@router.post("", status_code=201)
async def enroll_endpoint(
    body: EnrollmentCreate,
    user: UserContext = Depends(get_current_user),
    lifecycle: EnrollmentLifecycle = Depends(get_lifecycle)
):
    """
    Enroll in simulation
    404 if the simulation is missing or inactive, 409 if already enrolled
    """
    enrollment = await lifecycle.enroll(user.user_id, body.simulation_id)
    simulation = await get_simulation(lifecycle.db, body.simulation_id)

    return {
        "success": True,
        "message": "Successfully enrolled in simulation",
        "data": {
            "enrollment": enrollment,
            "simulation": simulation_summary(simulation)
        }
    }


@router.get("/my")
async def get_my_enrollments(
    status: Optional[EnrollmentStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """Get current user's enrollments, newest first"""
    status_value = status.value if status else None
    skip = (page - 1) * limit

    enrollments = await enrollments_db.list_user_enrollments(db, user.user_id, status_value, skip, limit)
    total = await enrollments_db.count_user_enrollments(db, user.user_id, status_value)

    # Enrich with simulation data
    for enr in enrollments:
        simulation = await get_simulation(db, enr["simulation_id"], active_only=False)
        enr["simulation"] = simulation_summary(simulation)

    return {
        "success": True,
        "data": {
            "enrollments": enrollments,
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit),
                "total_items": total,
                "items_per_page": limit
            }
        }
    }


@router.get("/{enrollment_id}")
async def get_enrollment_endpoint(
    enrollment_id: str,
    user: UserContext = Depends(get_current_user),
    lifecycle: EnrollmentLifecycle = Depends(get_lifecycle)
):
    """Get one enrollment (owner or admin)"""
    enrollment = await lifecycle.load(enrollment_id, user.user_id, user.is_admin)
    simulation = await get_simulation(lifecycle.db, enrollment["simulation_id"], active_only=False)
    enrollment["simulation"] = simulation_summary(simulation)

    return {"success": True, "data": {"enrollment": enrollment}}


@router.put("/{enrollment_id}/progress")
async def update_progress(
    enrollment_id: str,
    body: ProgressUpdate,
    user: UserContext = Depends(get_current_user),
    lifecycle: EnrollmentLifecycle = Depends(get_lifecycle)
):
    enrollment = await lifecycle.record_progress(
        enrollment_id,
        user.user_id,
        body.module_id,
        is_completed=body.is_completed,
        time_spent=body.time_spent,
        score=body.score,
        is_admin=user.is_admin
    )
    return {
        "success": True,
        "message": "Progress updated successfully",
        "data": {"enrollment": enrollment}
    }


@router.put("/{enrollment_id}/complete")
async def complete_enrollment(
    enrollment_id: str,
    user: UserContext = Depends(get_current_user),
    lifecycle: EnrollmentLifecycle = Depends(get_lifecycle)
):
    enrollment = await lifecycle.complete(enrollment_id, user.user_id, user.is_admin)
    return {
        "success": True,
        "message": "Simulation completed successfully",
        "data": {"enrollment": enrollment}
    }


@router.put("/{enrollment_id}/feedback")
async def submit_feedback(
    enrollment_id: str,
    body: FeedbackCreate,
    user: UserContext = Depends(get_current_user),
    lifecycle: EnrollmentLifecycle = Depends(get_lifecycle)
):
    """Review a completed simulation. Last submission wins."""
    enrollment = await lifecycle.submit_feedback(
        enrollment_id,
        user.user_id,
        body.rating,
        review=body.review,
        would_recommend=body.would_recommend,
        is_admin=user.is_admin
    )
    return {
        "success": True,
        "message": "Feedback submitted successfully",
        "data": {"enrollment": enrollment}
    }


@router.delete("/{enrollment_id}")
async def withdraw(
    enrollment_id: str,
    user: UserContext = Depends(get_current_user),
    lifecycle: EnrollmentLifecycle = Depends(get_lifecycle)
):
    """Withdraw: status becomes dropped, the record is kept"""
    await lifecycle.withdraw(enrollment_id, user.user_id, user.is_admin)
    return {
        "success": True,
        "message": "Successfully withdrawn from simulation"
    }
