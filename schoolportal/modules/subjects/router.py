from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
from datetime import datetime, timezone
import logging
import uuid

from schoolportal.core.dependencies import require_admin
from schoolportal.core.security import get_current_user
from schoolportal.db.supabase import get_supabase
from schoolportal.schemas.subjects import SubjectCreate, SubjectPatch, SubjectResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subjects"])


@router.post("/", response_model=SubjectResponse, status_code=201)
def create_subject(
    subject: SubjectCreate,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    subject_data = subject.model_dump()
    subject_data["id"] = str(uuid.uuid4())
    subject_data["created_at"] = datetime.now(timezone.utc).isoformat()

    result = client.table("subjects").insert(subject_data).execute()
    logger.info("Subject %s created", subject_data["id"])
    return result.data[0]


@router.get("/", response_model=list[SubjectResponse])
def get_subjects(
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    """Subjects in display order. Any signed-in user."""
    try:
        result = client.table("subjects").select("*").order("order").execute()
        return result.data
    except Exception:
        logger.exception("Get subjects error")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{subject_id}", response_model=SubjectResponse)
def get_subject(
    subject_id: str,
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    result = client.table("subjects").select("*").eq("id", subject_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Subject not found")
    return result.data[0]


@router.patch("/{subject_id}", response_model=SubjectResponse)
def update_subject(
    subject_id: str,
    subject: SubjectPatch,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    update_data = subject.model_dump(exclude_unset=True)
    if not update_data:
        return get_subject(subject_id, admin, client)

    result = client.table("subjects").update(update_data).eq("id", subject_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Subject not found")
    return result.data[0]


@router.delete("/{subject_id}")
def delete_subject(
    subject_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    result = client.table("subjects").delete().eq("id", subject_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Subject not found")
    return {"message": "Subject deleted successfully"}
