"""
Submission intake, grading and reopening.

A student has at most one live submission per assignment. Resubmitting
overwrites it in place; once graded it is closed until the teacher reopens it.
"""
import logging
import uuid
from typing import List, Optional, Tuple

from supabase import Client

from schoolportal.core import lifecycle
from schoolportal.core.errors import NotFoundError, PermissionDeniedError
from schoolportal.db.storage import ATTACHMENTS_PREFIX, FileUpload, upload_file
from schoolportal.modules.assignments.service import (
    ensure_enrolled,
    ensure_owner,
    get_assignment,
    get_student,
    utc_now_iso,
)
from schoolportal.schemas.submissions import GradeRequest, SubmissionCreate

logger = logging.getLogger(__name__)


def get_submission(client: Client, submission_id: str) -> dict:
    result = client.table("submissions").select("*").eq("id", submission_id).execute()
    if not result.data:
        raise NotFoundError("Submission not found")
    return result.data[0]


def split_live(rows: List[dict]) -> Tuple[Optional[dict], List[dict]]:
    """Newest row is the live submission; anything older is a stale duplicate."""
    if not rows:
        return None, []
    ordered = sorted(rows, key=lambda r: r.get("submitted_at") or "", reverse=True)
    return ordered[0], ordered[1:]


def refresh_submission_count(client: Client, assignment_id: str) -> int:
    result = (
        client
        .table("submissions")
        .select("id", count="exact")
        .eq("assignment_id", assignment_id)
        .execute()
    )
    count = result.count if result.count is not None else len(result.data)
    client.table("assignments").update({"submissions_count": count}).eq("id", assignment_id).execute()
    return count


def submit(client: Client, data: SubmissionCreate, student: dict) -> Tuple[dict, bool]:
    """
    Create or overwrite the caller's submission for an assignment.

    Returns:
        (submission, created): created is False for a resubmission

    Raises:
        NotFoundError: assignment or student record missing
        PermissionDeniedError: student not enrolled in the assignment's class
        ConflictError: the live submission is already graded
    """
    assignment = get_assignment(client, data.assignment_id)
    ensure_enrolled(get_student(client, student["id"]), assignment["class_id"])

    rows = (
        client
        .table("submissions")
        .select("*")
        .eq("assignment_id", data.assignment_id)
        .eq("student_id", student["id"])
        .execute()
    ).data
    live, stale = split_live(rows)
    lifecycle.ensure_can_submit(live)

    payload = {
        "content": data.content,
        "attachments": data.attachments,
        "submitted_at": utc_now_iso(),
        "status": lifecycle.SUBMITTED,
    }

    if live is None:
        record = {
            "id": str(uuid.uuid4()),
            "assignment_id": data.assignment_id,
            "student_id": student["id"],
            **payload,
            "grade": None,
            "feedback": None,
        }
        result = client.table("submissions").insert(record).execute()
        refresh_submission_count(client, data.assignment_id)
        logger.info("Submission %s received from student %s for assignment %s",
                    record["id"], student["id"], data.assignment_id)
        return result.data[0], True

    result = client.table("submissions").update(payload).eq("id", live["id"]).execute()
    if stale:
        logger.warning("Removing %d stale submissions for assignment %s, student %s",
                       len(stale), data.assignment_id, student["id"])
        client.table("submissions").delete().in_("id", [r["id"] for r in stale]).execute()
        refresh_submission_count(client, data.assignment_id)
    logger.info("Submission %s resubmitted by student %s", live["id"], student["id"])
    return result.data[0], False


def grade(client: Client, submission_id: str, request: GradeRequest, teacher: dict) -> dict:
    submission = get_submission(client, submission_id)
    assignment = get_assignment(client, submission["assignment_id"])
    ensure_owner(assignment, teacher)

    value = lifecycle.validate_grade(request.grade, assignment.get("points"))
    update_data = {
        "status": lifecycle.GRADED,
        "grade": value,
        "feedback": request.feedback,
        "graded_at": utc_now_iso(),
        "graded_by": teacher["id"],
    }
    result = client.table("submissions").update(update_data).eq("id", submission_id).execute()
    if not result.data:
        raise NotFoundError("Submission not found")
    logger.info("Submission %s graded %s by teacher %s", submission_id, value, teacher["id"])
    return result.data[0]


def reopen(client: Client, submission_id: str, teacher: dict) -> dict:
    submission = get_submission(client, submission_id)
    assignment = get_assignment(client, submission["assignment_id"])
    ensure_owner(assignment, teacher)
    lifecycle.ensure_can_reopen(submission)

    update_data = {
        "status": lifecycle.SUBMITTED,
        "grade": None,
        "feedback": None,
        "graded_at": None,
        "graded_by": None,
    }
    result = client.table("submissions").update(update_data).eq("id", submission_id).execute()
    logger.info("Submission %s reopened by teacher %s", submission_id, teacher["id"])
    return result.data[0]


def get_submission_for_user(client: Client, submission_id: str, user: dict) -> dict:
    submission = get_submission(client, submission_id)
    if user["role"] == "student":
        if submission["student_id"] != user["id"]:
            raise PermissionDeniedError("Access denied")
    else:
        ensure_owner(get_assignment(client, submission["assignment_id"]), user, allow_admin=True)
    return submission


def list_for_assignment(client: Client, assignment_id: str, user: dict) -> List[dict]:
    ensure_owner(get_assignment(client, assignment_id), user, allow_admin=True)
    result = (
        client
        .table("submissions")
        .select("*")
        .eq("assignment_id", assignment_id)
        .order("submitted_at", desc=True)
        .execute()
    )
    return result.data


def list_for_student(client: Client, student_id: str) -> List[dict]:
    result = (
        client
        .table("submissions")
        .select("*")
        .eq("student_id", student_id)
        .order("submitted_at", desc=True)
        .execute()
    )
    return result.data


def upload_attachment(client: Client, student: dict, upload: FileUpload) -> str:
    return upload_file(client, f"{ATTACHMENTS_PREFIX}/{student['id']}", upload)
