from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from supabase import Client
from typing import Optional

from schoolportal.core.dependencies import require_admin_or_teacher, require_student, require_teacher
from schoolportal.core.security import get_current_user
from schoolportal.db.storage import read_upload
from schoolportal.db.supabase import get_supabase
from schoolportal.modules.assignments import service
from schoolportal.schemas.assignments import (
    AssignmentCreate,
    AssignmentDeleteResponse,
    AssignmentPatch,
    AssignmentResponse,
    StudentAssignmentResponse,
)

router = APIRouter(tags=["Assignments"])


@router.post("/", response_model=AssignmentResponse, status_code=201)
def create_assignment(
    title: str = Form(...),
    subject: str = Form(...),
    class_id: str = Form(...),
    due_date: str = Form(...),
    due_time: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    points: Optional[int] = Form(None),
    priority: str = Form("medium"),
    assignment_type: str = Form("assignment"),
    material: Optional[UploadFile] = File(None),
    user: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
):
    """
    Create an assignment for one of the teacher's classes.
    An attached material file is uploaded before anything is written.
    """
    data = AssignmentCreate(
        title=title,
        subject=subject,
        class_id=class_id,
        due_date=due_date,
        due_time=due_time,
        description=description,
        points=points,
        priority=priority,
        assignment_type=assignment_type,
    )
    upload = read_upload(material) if material is not None and material.filename else None
    return service.with_effective_status(service.create_assignment(client, data, user, upload))


@router.get("/teacher", response_model=list[AssignmentResponse])
def get_teacher_assignments(
    status: Optional[str] = Query(None, description="pending, submitted, graded or overdue"),
    priority: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Match on title, subject or description"),
    user: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
):
    """Assignments created by the caller, newest first."""
    rows = service.list_teacher_assignments(client, user["id"])
    return service.filter_assignments(rows, status, priority, search)


@router.get("/student", response_model=list[StudentAssignmentResponse])
def get_student_assignments(
    status: Optional[str] = Query(None, description="pending, overdue, submitted or graded"),
    priority: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Match on title, subject or description"),
    user: dict = Depends(require_student),
    client: Client = Depends(get_supabase),
):
    """
    Assignments for every class the student is enrolled in, ordered by due date,
    each with the student's own submission and the action they can take next.
    """
    rows = service.list_student_assignments(client, user["id"])
    return service.filter_assignments(rows, status, priority, search)


@router.get("/{assignment_id}")
def get_assignment(
    assignment_id: str,
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    """
    Get one assignment. Students get their own view of it, teachers and admins
    the record with its effective status.
    """
    row = service.get_assignment_for_user(client, assignment_id, user)
    if user["role"] == "student":
        return StudentAssignmentResponse(**row)
    return AssignmentResponse(**row)


@router.patch("/{assignment_id}", response_model=AssignmentResponse)
def update_assignment(
    assignment_id: str,
    patch: AssignmentPatch,
    user: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
):
    """
    Update any subset of the mutable fields. The material is kept unless
    replaced through the material endpoint.
    """
    return service.with_effective_status(service.update_assignment(client, assignment_id, patch, user))


@router.put("/{assignment_id}/material", response_model=AssignmentResponse)
def replace_material(
    assignment_id: str,
    material: UploadFile = File(...),
    user: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
):
    """Upload a new material file and point the assignment at it."""
    row = service.update_assignment(client, assignment_id, AssignmentPatch(), user, read_upload(material))
    return service.with_effective_status(row)


@router.delete("/{assignment_id}", response_model=AssignmentDeleteResponse)
def delete_assignment(
    assignment_id: str,
    user: dict = Depends(require_admin_or_teacher),
    client: Client = Depends(get_supabase),
):
    """Delete an assignment together with its submissions."""
    removed = service.delete_assignment(client, assignment_id, user)
    return AssignmentDeleteResponse(message="Assignment deleted successfully", deleted_submissions=removed)
