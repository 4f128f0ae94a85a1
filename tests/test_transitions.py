from datetime import datetime, timedelta

import pytest

from blixora.enrollments.errors import InvalidTransition
from blixora.enrollments.lifecycle import apply_progress, round_half_up, transition
from blixora.enrollments.models import Enrollment, EnrollmentStatus


def new_enrollment() -> dict:
    return Enrollment(enrollment_id="ENR_TEST", user_id="USR_1", simulation_id="SIM_1").dict()


def test_new_enrollment_defaults():
    enrollment = new_enrollment()
    assert enrollment["status"] == "enrolled"
    assert enrollment["progress"]["completed_modules"] == []
    assert enrollment["progress"]["percentage_complete"] == 0
    assert enrollment["started_at"] is None
    assert enrollment["version"] == 0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(89.5) == 90
    assert round_half_up(4.25, 1) == 4.3
    assert round_half_up(3.6666, 1) == 3.7


@pytest.mark.parametrize("current,target", [
    ("completed", EnrollmentStatus.DROPPED),
    ("completed", EnrollmentStatus.IN_PROGRESS),
    ("dropped", EnrollmentStatus.COMPLETED),
    ("dropped", EnrollmentStatus.IN_PROGRESS),
    ("in-progress", EnrollmentStatus.ENROLLED),
])
def test_illegal_transitions_rejected(current, target):
    enrollment = new_enrollment()
    enrollment["status"] = current
    with pytest.raises(InvalidTransition):
        transition(enrollment, target)
    assert enrollment["status"] == current


def test_started_at_set_once():
    enrollment = new_enrollment()
    first = datetime(2026, 1, 1)
    transition(enrollment, EnrollmentStatus.IN_PROGRESS, first)
    assert enrollment["started_at"] == first
    transition(enrollment, EnrollmentStatus.COMPLETED, first + timedelta(days=2))
    assert enrollment["started_at"] == first


def test_completion_forces_full_percentage():
    enrollment = new_enrollment()
    done = datetime(2026, 2, 1)
    transition(enrollment, EnrollmentStatus.COMPLETED, done)
    assert enrollment["status"] == "completed"
    assert enrollment["completed_at"] == done
    assert enrollment["progress"]["percentage_complete"] == 100


def test_duplicate_modules_counted_once():
    enrollment = new_enrollment()
    for module_id in ["m1", "m2", "m1", "m3", "m2"]:
        apply_progress(enrollment, module_id)
    assert sorted(enrollment["progress"]["completed_modules"]) == ["m1", "m2", "m3"]


def test_first_completed_module_starts_enrollment():
    enrollment = new_enrollment()
    apply_progress(enrollment, "m1", is_completed=False)
    assert enrollment["status"] == "enrolled"
    assert enrollment["progress"]["last_accessed"] is not None

    apply_progress(enrollment, "m1")
    assert enrollment["status"] == "in-progress"
    started = enrollment["started_at"]

    apply_progress(enrollment, "m2")
    assert enrollment["status"] == "in-progress"
    assert enrollment["started_at"] == started


def test_time_spent_accumulates_on_resubmission():
    enrollment = new_enrollment()
    apply_progress(enrollment, "m1", time_spent=10)
    apply_progress(enrollment, "m1", time_spent=5)
    assert enrollment["progress"]["time_spent"] == 15
    assert enrollment["progress"]["completed_modules"] == ["m1"]


def test_score_is_rounded_mean_of_assessments():
    enrollment = new_enrollment()
    for module_id, score in [("m1", 80), ("m2", 90), ("m3", 100)]:
        apply_progress(enrollment, module_id, score=score, time_spent=3)

    performance = enrollment["performance"]
    assert performance["score"] == 90
    assert len(performance["assessments"]) == 3
    assert performance["assessments"][0]["max_score"] == 100
    assert performance["assessments"][0]["time_spent"] == 3


def test_score_rounds_half_up():
    enrollment = new_enrollment()
    apply_progress(enrollment, "m1", score=80)
    apply_progress(enrollment, "m2", score=85)
    assert enrollment["performance"]["score"] == 83


def test_percentage_capped_below_hundred_until_completed():
    enrollment = new_enrollment()
    apply_progress(enrollment, "m1", total_modules=2)
    assert enrollment["progress"]["percentage_complete"] == 50
    apply_progress(enrollment, "m2", total_modules=2)
    assert enrollment["progress"]["percentage_complete"] == 99
    assert enrollment["status"] == "in-progress"
