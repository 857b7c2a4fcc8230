"""
Assignment and submission lifecycle.

Assignments carry a teacher-facing ``status`` (pending, submitted, graded).
Each (assignment, student) pair has at most one live submission that moves
through::

    (none) --submit--> submitted --grade--> graded
                ^  |                          |
                +--+ resubmit                 |
                ^                             |
                +----------- reopen ----------+

"overdue" is never stored. It is layered over ``pending`` at read time by
:func:`effective_status`, and every read path goes through the functions in
this module so the same assignment always shows the same status.
"""
import math
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo

from schoolportal.core.config import settings
from schoolportal.core.errors import ConflictError, ValidationError

PENDING = "pending"
SUBMITTED = "submitted"
GRADED = "graded"
OVERDUE = "overdue"

ASSIGNMENT_STATUSES = (PENDING, SUBMITTED, GRADED)
SUBMISSION_STATUSES = (SUBMITTED, GRADED)

ACTION_SUBMIT = "submit"
ACTION_RESUBMIT = "resubmit"


def parse_date(value: Any) -> date:
    """Accept a date, a datetime, or an ISO-8601 date/timestamp string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid due date: {value!r}")


def parse_time(value: Any) -> Optional[time]:
    """``HH:MM`` or ``HH:MM:SS``; empty means no time of day."""
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid due time: {value!r}")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def due_at(assignment: Mapping[str, Any]) -> datetime:
    """Due moment: due_date at due_time, or the start of the due day when no time is set."""
    due_day = parse_date(assignment.get("due_date"))
    due_time = parse_time(assignment.get("due_time"))
    if due_time is None:
        due_time = time.min
    return datetime.combine(due_day, due_time.replace(tzinfo=None), tzinfo=ZoneInfo(settings.TIMEZONE))


def is_overdue(assignment: Mapping[str, Any], now: Optional[datetime] = None) -> bool:
    now = now or now_utc()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now > due_at(assignment)


def effective_status(assignment: Mapping[str, Any], now: Optional[datetime] = None) -> str:
    status = assignment.get("status") or PENDING
    if status == PENDING and is_overdue(assignment, now):
        return OVERDUE
    return status


def student_status(
    assignment: Mapping[str, Any],
    submission: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> str:
    """Status of an assignment as one student sees it, from their own submission."""
    if submission is None:
        return OVERDUE if is_overdue(assignment, now) else PENDING
    if submission.get("status") == GRADED:
        return GRADED
    return SUBMITTED


def submission_action(submission: Optional[Mapping[str, Any]]) -> Optional[str]:
    """The action a student is offered next: submit, resubmit, or nothing."""
    if submission is None:
        return ACTION_SUBMIT
    if submission.get("status") == GRADED:
        return None
    return ACTION_RESUBMIT


def ensure_can_submit(submission: Optional[Mapping[str, Any]]) -> None:
    if submission is not None and submission.get("status") == GRADED:
        raise ConflictError("Submission has already been graded and cannot be resubmitted")


def ensure_can_reopen(submission: Mapping[str, Any]) -> None:
    if submission.get("status") != GRADED:
        raise ConflictError("Only graded submissions can be reopened")


def validate_grade(grade: Any, points: Optional[Any]) -> float:
    """
    Check a grade against the assignment's point value.

    Returns the grade as a number. Raises ValidationError when the grade is
    not a finite number, is negative, or exceeds ``points``.
    """
    if isinstance(grade, bool):
        raise ValidationError("Grade must be a number")
    try:
        value = float(grade)
    except (TypeError, ValueError):
        raise ValidationError("Grade must be a number")
    if not math.isfinite(value):
        raise ValidationError("Grade must be a finite number")
    if value < 0:
        raise ValidationError("Grade cannot be negative")
    if points is not None and value > float(points):
        raise ValidationError(f"Grade {value:g} exceeds the assignment's {points} points")
    return value
