"""
Enrollment Lifecycle Engine
File: blixora/enrollments/lifecycle.py

Owns enrollment state transitions and the metric rollups they cause on the
parent simulation and the owning user.

States: enrolled -> in-progress -> completed, and enrolled/in-progress ->
dropped. Nothing leaves completed or dropped. Every status change goes
through transition().

Enrollment documents are written back with a version check, so two requests
racing on the same enrollment cannot both win. Simulation and user counters
are bumped with atomic $inc.
"""

import logging
import math
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from blixora.auth import database as users_db
from blixora.database import generate_id
from blixora.enrollments import database as enrollments_db
from blixora.enrollments.errors import (
    AlreadyEnrolled, ConcurrentUpdate, Forbidden, InvalidTransition, NotFound
)
from blixora.enrollments.models import Assessment, Enrollment, EnrollmentStatus
from blixora.simulations import database as simulations_db

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    EnrollmentStatus.ENROLLED: {EnrollmentStatus.IN_PROGRESS, EnrollmentStatus.COMPLETED, EnrollmentStatus.DROPPED},
    EnrollmentStatus.IN_PROGRESS: {EnrollmentStatus.COMPLETED, EnrollmentStatus.DROPPED},
    EnrollmentStatus.COMPLETED: set(),
    EnrollmentStatus.DROPPED: set(),
}

ASSESSMENT_MAX_SCORE = 100


# ==================== PURE HELPERS ====================

def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def transition(enrollment: dict, target: EnrollmentStatus, now: Optional[datetime] = None) -> dict:
    """
    Move an enrollment document to target status, stamping timestamps.

    started_at and completed_at are only ever set once. Raises
    InvalidTransition when the move is not in ALLOWED_TRANSITIONS.
    """
    now = now or datetime.utcnow()
    current = EnrollmentStatus(enrollment["status"])

    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot move enrollment from '{current.value}' to '{target.value}'")

    enrollment["status"] = target.value

    if target == EnrollmentStatus.IN_PROGRESS and not enrollment.get("started_at"):
        enrollment["started_at"] = now

    if target == EnrollmentStatus.COMPLETED:
        if not enrollment.get("completed_at"):
            enrollment["completed_at"] = now
        enrollment.setdefault("progress", {})["percentage_complete"] = 100

    return enrollment


def apply_progress(
    enrollment: dict,
    module_id: str,
    is_completed: bool = True,
    time_spent: Optional[float] = None,
    score: Optional[float] = None,
    total_modules: int = 0,
    now: Optional[datetime] = None
) -> dict:
    """Fold one progress report into an enrollment document"""
    now = now or datetime.utcnow()
    progress = enrollment.setdefault("progress", {})
    completed_modules = progress.setdefault("completed_modules", [])

    if is_completed and module_id not in completed_modules:
        completed_modules.append(module_id)

    if time_spent:
        progress["time_spent"] = progress.get("time_spent", 0) + time_spent

    progress["current_module"] = module_id
    progress["last_accessed"] = now

    if enrollment["status"] != EnrollmentStatus.COMPLETED.value and total_modules > 0:
        # 100 is reserved for completed enrollments
        percentage = math.floor(len(completed_modules) / total_modules * 100)
        progress["percentage_complete"] = min(percentage, 99)

    if enrollment["status"] == EnrollmentStatus.ENROLLED.value and completed_modules:
        transition(enrollment, EnrollmentStatus.IN_PROGRESS, now)

    if score is not None:
        performance = enrollment.setdefault("performance", {})
        assessments = performance.setdefault("assessments", [])
        assessments.append(Assessment(
            module_id=module_id,
            score=score,
            max_score=ASSESSMENT_MAX_SCORE,
            completed_at=now,
            time_spent=time_spent or 0
        ).dict())
        total = sum(a["score"] for a in assessments)
        performance["score"] = int(round_half_up(total / len(assessments)))

    return enrollment


# ==================== ENGINE ====================

class EnrollmentLifecycle:
    """
    Enrollment operations against an explicitly passed database handle.
    Holds no state between calls.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def load(self, enrollment_id: str, caller_id: str, is_admin: bool = False) -> dict:
        """
        Fetch an enrollment the caller may act on

        Raises:
            NotFound: no such enrollment
            Forbidden: caller is neither the owner nor an admin
        """
        enrollment = await enrollments_db.get_enrollment(self.db, enrollment_id)
        if not enrollment:
            raise NotFound("Enrollment not found")

        if enrollment["user_id"] != caller_id and not is_admin:
            raise Forbidden("Access denied")

        return enrollment

    async def _save(self, enrollment: dict):
        version = enrollment.get("version", 0)
        saved = await enrollments_db.save_enrollment(self.db, enrollment, version)
        if not saved:
            logger.warning("Lost update race on enrollment %s (version %s)", enrollment["enrollment_id"], version)
            raise ConcurrentUpdate("Enrollment was modified by another request, please retry")

    async def enroll(self, user_id: str, simulation_id: str) -> dict:
        simulation = await simulations_db.get_simulation(self.db, simulation_id)
        if not simulation:
            raise NotFound("Simulation not found")

        existing = await enrollments_db.find_user_enrollment(self.db, user_id, simulation_id)
        if existing:
            raise AlreadyEnrolled("You are already enrolled in this simulation")

        enrollment = Enrollment(
            enrollment_id=generate_id("ENR"),
            user_id=user_id,
            simulation_id=simulation_id,
            status=EnrollmentStatus.ENROLLED
        ).dict()

        try:
            await enrollments_db.insert_enrollment(self.db, enrollment)
        except DuplicateKeyError:
            # A concurrent request enrolled the same pair first
            raise AlreadyEnrolled("You are already enrolled in this simulation")

        await simulations_db.increment_metric(self.db, simulation_id, "enrollments", 1)

        logger.info("User %s enrolled in %s as %s", user_id, simulation_id, enrollment["enrollment_id"])
        return enrollment

    async def record_progress(
        self,
        enrollment_id: str,
        caller_id: str,
        module_id: str,
        is_completed: bool = True,
        time_spent: Optional[float] = None,
        score: Optional[float] = None,
        is_admin: bool = False
    ) -> dict:
        enrollment = await self.load(enrollment_id, caller_id, is_admin)
        previous_status = enrollment["status"]

        simulation = await simulations_db.get_simulation(self.db, enrollment["simulation_id"], active_only=False)
        apply_progress(
            enrollment,
            module_id,
            is_completed=is_completed,
            time_spent=time_spent,
            score=score,
            total_modules=simulations_db.module_count(simulation)
        )

        await self._save(enrollment)

        if enrollment["status"] != previous_status:
            logger.info("Enrollment %s started (%s -> %s)", enrollment_id, previous_status, enrollment["status"])

        if score is not None and enrollment["status"] == EnrollmentStatus.COMPLETED.value:
            await self.refresh_average_score(enrollment["simulation_id"])
        return enrollment

    async def complete(self, enrollment_id: str, caller_id: str, is_admin: bool = False) -> dict:
        enrollment = await self.load(enrollment_id, caller_id, is_admin)

        if enrollment["status"] == EnrollmentStatus.COMPLETED.value:
            # Already counted; do not touch the counters again
            return enrollment

        transition(enrollment, EnrollmentStatus.COMPLETED)
        await self._save(enrollment)

        simulation_id = enrollment["simulation_id"]
        await simulations_db.increment_metric(self.db, simulation_id, "completions", 1)
        await users_db.increment_completed(self.db, enrollment["user_id"])

        await self.refresh_average_score(simulation_id)

        logger.info("Enrollment %s completed", enrollment_id)
        return enrollment

    async def withdraw(self, enrollment_id: str, caller_id: str, is_admin: bool = False) -> dict:
        enrollment = await self.load(enrollment_id, caller_id, is_admin)

        if enrollment["status"] == EnrollmentStatus.COMPLETED.value:
            raise InvalidTransition("Cannot withdraw from completed simulations")
        if enrollment["status"] == EnrollmentStatus.DROPPED.value:
            raise InvalidTransition("Already withdrawn from this simulation")

        transition(enrollment, EnrollmentStatus.DROPPED)
        await self._save(enrollment)

        decremented = await simulations_db.decrement_enrollments(self.db, enrollment["simulation_id"])
        if not decremented:
            logger.warning(
                "metrics.enrollments for %s already at zero while withdrawing %s; counter left at zero",
                enrollment["simulation_id"], enrollment_id
            )

        logger.info("Enrollment %s dropped", enrollment_id)
        return enrollment

    async def submit_feedback(
        self,
        enrollment_id: str,
        caller_id: str,
        rating: int,
        review: Optional[str] = None,
        would_recommend: Optional[bool] = None,
        is_admin: bool = False
    ) -> dict:
        enrollment = await self.load(enrollment_id, caller_id, is_admin)

        if enrollment["status"] != EnrollmentStatus.COMPLETED.value:
            raise InvalidTransition("You can only review completed simulations")

        enrollment["feedback"] = {
            "rating": rating,
            "review": review,
            "would_recommend": would_recommend,
            "review_date": datetime.utcnow()
        }
        await self._save(enrollment)

        await self.refresh_rating(enrollment["simulation_id"])
        return enrollment

    async def refresh_rating(self, simulation_id: str):
        """Recompute average_rating and total_reviews from every rated enrollment"""
        average, count = await enrollments_db.rating_summary(self.db, simulation_id)
        average_rating = round_half_up(average, 1) if count else 0.0
        await simulations_db.set_rating_metrics(self.db, simulation_id, average_rating, count)

    async def refresh_average_score(self, simulation_id: str):
        """Recompute average_score from every completed enrollment with a score"""
        average_score = await enrollments_db.score_summary(self.db, simulation_id)
        if average_score is not None:
            await simulations_db.set_average_score(self.db, simulation_id, int(round_half_up(average_score)))
