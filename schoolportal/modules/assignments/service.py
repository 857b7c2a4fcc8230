"""
Assignment workflows: create (with optional material upload), edit, read
with derived status, and delete.

Every read goes through ``with_effective_status`` or ``student_view`` so
all portals render the same status for the same assignment.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from supabase import Client

from schoolportal.core import lifecycle
from schoolportal.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from schoolportal.db.storage import MATERIALS_PREFIX, FileUpload, upload_file
from schoolportal.schemas.assignments import AssignmentCreate, AssignmentPatch

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "subject", "class_id", "due_date")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# -------------------------
# LOOKUPS
# -------------------------
def get_class(client: Client, class_id: str) -> dict:
    result = client.table("classes").select("*").eq("id", class_id).execute()
    if not result.data:
        raise NotFoundError("Class not found")
    return result.data[0]


def get_assignment(client: Client, assignment_id: str) -> dict:
    result = client.table("assignments").select("*").eq("id", assignment_id).execute()
    if not result.data:
        raise NotFoundError("Assignment not found")
    return result.data[0]


def get_student(client: Client, student_id: str) -> dict:
    result = client.table("students").select("*").eq("id", student_id).execute()
    if not result.data:
        raise NotFoundError("Student not found")
    return result.data[0]


def ensure_teaches(class_row: dict, teacher_id: str) -> None:
    if teacher_id not in (class_row.get("teacher_ids") or []):
        raise PermissionDeniedError("You are not assigned to this class")


def ensure_owner(assignment: dict, user: dict, allow_admin: bool = False) -> None:
    if allow_admin and user["role"] == "admin":
        return
    if assignment.get("teacher_id") != user["id"]:
        raise PermissionDeniedError("Access denied")


def ensure_enrolled(student_row: dict, class_id: str) -> None:
    if class_id not in (student_row.get("enrolled_classes") or []):
        raise PermissionDeniedError("Not enrolled in this class")


# -------------------------
# WRITES
# -------------------------
def create_assignment(
    client: Client,
    data: AssignmentCreate,
    teacher: dict,
    material: Optional[FileUpload] = None,
) -> dict:
    class_row = get_class(client, data.class_id)
    ensure_teaches(class_row, teacher["id"])

    # Upload first: a failed upload leaves nothing behind
    material_url = upload_file(client, MATERIALS_PREFIX, material) if material else None

    now = utc_now_iso()
    record = {
        "id": str(uuid.uuid4()),
        "teacher_id": teacher["id"],
        **data.model_dump(mode="json"),
        "material": material_url,
        "status": lifecycle.PENDING,
        "submissions_count": 0,
        "created_at": now,
        "updated_at": now,
    }
    result = client.table("assignments").insert(record).execute()
    logger.info("Assignment %s created by teacher %s for class %s", record["id"], teacher["id"], data.class_id)
    return result.data[0]


def update_assignment(
    client: Client,
    assignment_id: str,
    patch: AssignmentPatch,
    teacher: dict,
    material: Optional[FileUpload] = None,
) -> dict:
    assignment = get_assignment(client, assignment_id)
    ensure_owner(assignment, teacher)

    changes = patch.model_dump(mode="json", exclude_unset=True)
    cleared = [field for field in REQUIRED_FIELDS if field in changes and changes[field] is None]
    if cleared:
        raise ValidationError(f"Required fields cannot be cleared: {', '.join(cleared)}")

    if "class_id" in changes and changes["class_id"] != assignment["class_id"]:
        ensure_teaches(get_class(client, changes["class_id"]), teacher["id"])

    if material:
        changes["material"] = upload_file(client, MATERIALS_PREFIX, material)

    if not changes:
        return assignment

    changes["updated_at"] = utc_now_iso()
    result = client.table("assignments").update(changes).eq("id", assignment_id).execute()
    if not result.data:
        raise NotFoundError("Assignment not found")
    logger.info("Assignment %s updated: %s", assignment_id, sorted(changes))
    return result.data[0]


def delete_assignment(client: Client, assignment_id: str, user: dict) -> int:
    """Delete an assignment and its submissions. Returns the number of submissions removed."""
    assignment = get_assignment(client, assignment_id)
    ensure_owner(assignment, user, allow_admin=True)

    removed = client.table("submissions").delete().eq("assignment_id", assignment_id).execute()
    client.table("assignments").delete().eq("id", assignment_id).execute()
    count = len(removed.data or [])
    logger.info("Assignment %s deleted with %d submissions", assignment_id, count)
    return count


# -------------------------
# READS
# -------------------------
def with_effective_status(assignment: dict, now: Optional[datetime] = None) -> dict:
    return {**assignment, "effective_status": lifecycle.effective_status(assignment, now)}


def student_view(assignment: dict, submission: Optional[dict], now: Optional[datetime] = None) -> dict:
    return {
        **assignment,
        "effective_status": lifecycle.student_status(assignment, submission, now),
        "submission": submission,
        "action": lifecycle.submission_action(submission),
    }


def live_submissions(rows: Iterable[dict]) -> Dict[str, dict]:
    """Newest submission per assignment id."""
    live: Dict[str, dict] = {}
    for row in rows:
        current = live.get(row["assignment_id"])
        if current is None or (row.get("submitted_at") or "") > (current.get("submitted_at") or ""):
            live[row["assignment_id"]] = row
    return live


def filter_assignments(
    rows: List[dict],
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
) -> List[dict]:
    if status:
        rows = [r for r in rows if r.get("effective_status") == status]
    if priority:
        rows = [r for r in rows if r.get("priority") == priority]
    if search:
        term = search.strip().lower()
        rows = [
            r for r in rows
            if any(term in (r.get(field) or "").lower() for field in ("title", "subject", "description"))
        ]
    return rows


def list_teacher_assignments(client: Client, teacher_id: str, now: Optional[datetime] = None) -> List[dict]:
    result = (
        client
        .table("assignments")
        .select("*")
        .eq("teacher_id", teacher_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [with_effective_status(a, now) for a in result.data]


def list_student_assignments(client: Client, student_id: str, now: Optional[datetime] = None) -> List[dict]:
    student = get_student(client, student_id)
    class_ids = student.get("enrolled_classes") or []
    if not class_ids:
        return []

    assignments = (
        client
        .table("assignments")
        .select("*")
        .in_("class_id", class_ids)
        .order("due_date")
        .execute()
    ).data
    if not assignments:
        return []

    submissions = (
        client
        .table("submissions")
        .select("*")
        .eq("student_id", student_id)
        .in_("assignment_id", [a["id"] for a in assignments])
        .execute()
    ).data
    live = live_submissions(submissions)
    return [student_view(a, live.get(a["id"]), now) for a in assignments]


def get_assignment_for_user(client: Client, assignment_id: str, user: dict, now: Optional[datetime] = None) -> dict:
    assignment = get_assignment(client, assignment_id)

    if user["role"] == "student":
        ensure_enrolled(get_student(client, user["id"]), assignment["class_id"])
        submissions = (
            client
            .table("submissions")
            .select("*")
            .eq("assignment_id", assignment_id)
            .eq("student_id", user["id"])
            .execute()
        ).data
        return student_view(assignment, live_submissions(submissions).get(assignment_id), now)

    ensure_owner(assignment, user, allow_admin=True)
    return with_effective_status(assignment, now)
