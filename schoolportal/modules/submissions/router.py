from fastapi import APIRouter, Depends, File, Response, UploadFile
from supabase import Client

from schoolportal.core.dependencies import require_admin_or_teacher, require_student, require_teacher
from schoolportal.core.security import get_current_user
from schoolportal.db.storage import read_upload
from schoolportal.db.supabase import get_supabase
from schoolportal.modules.submissions import service
from schoolportal.schemas.submissions import (
    AttachmentResponse,
    GradeRequest,
    SubmissionCreate,
    SubmissionResponse,
)

router = APIRouter(tags=["Submissions"])


@router.post("/", response_model=SubmissionResponse)
def submit_assignment(
    submission: SubmissionCreate,
    response: Response,
    user: dict = Depends(require_student),
    client: Client = Depends(get_supabase),
):
    """
    Submit or resubmit an assignment. A resubmission replaces the previous
    content in place; graded submissions cannot be resubmitted.
    Returns 201 on first submission and 200 on resubmission.
    """
    row, created = service.submit(client, submission, user)
    response.status_code = 201 if created else 200
    return row


@router.post("/attachments", response_model=AttachmentResponse, status_code=201)
def upload_attachment(
    file: UploadFile = File(...),
    user: dict = Depends(require_student),
    client: Client = Depends(get_supabase),
):
    """Upload an attachment and get back the URL to include in a submission."""
    return AttachmentResponse(url=service.upload_attachment(client, user, read_upload(file)))


@router.get("/my", response_model=list[SubmissionResponse])
def get_my_submissions(
    user: dict = Depends(require_student),
    client: Client = Depends(get_supabase),
):
    """Current student's submissions, newest first."""
    return service.list_for_student(client, user["id"])


@router.get("/assignment/{assignment_id}", response_model=list[SubmissionResponse])
def get_assignment_submissions(
    assignment_id: str,
    user: dict = Depends(require_admin_or_teacher),
    client: Client = Depends(get_supabase),
):
    """All submissions for an assignment. Owning teacher or admin."""
    return service.list_for_assignment(client, assignment_id, user)


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(
    submission_id: str,
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    return service.get_submission_for_user(client, submission_id, user)


@router.post("/{submission_id}/grade", response_model=SubmissionResponse)
def grade_submission(
    submission_id: str,
    grade: GradeRequest,
    user: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
):
    """
    Grade a submission. The grade must lie between 0 and the assignment's
    points when the assignment defines them.
    """
    return service.grade(client, submission_id, grade, user)


@router.post("/{submission_id}/reopen", response_model=SubmissionResponse)
def reopen_submission(
    submission_id: str,
    user: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
):
    """Clear the grade so the student can resubmit."""
    return service.reopen(client, submission_id, user)
