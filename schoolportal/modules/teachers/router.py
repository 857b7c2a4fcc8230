from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
from datetime import datetime, timezone
import logging

from schoolportal.core.dependencies import require_admin, require_admin_or_teacher
from schoolportal.db.supabase import get_supabase
from schoolportal.modules.admin.accounts import create_account, delete_account
from schoolportal.schemas.people import (
    AccountCreatedResponse,
    TeacherCreate,
    TeacherPatch,
    TeacherResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Teachers"])


@router.post("/", response_model=AccountCreatedResponse, status_code=201)
def create_teacher(
    teacher: TeacherCreate,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """
    Create a teacher account. Admin only.
    A password is generated and returned when none is given.
    """
    user_id, generated = create_account(client, teacher.email, teacher.name, "teacher", teacher.password)
    try:
        client.table("teachers").insert({
            "id": user_id,
            "name": teacher.name,
            "email": teacher.email,
            "phone": teacher.phone,
            "subjects": teacher.subjects,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
    except Exception as e:
        logger.error("Teacher record creation failed for %s: %s", user_id, e)
        delete_account(client, user_id)
        raise HTTPException(status_code=500, detail="Failed to create teacher record")

    return AccountCreatedResponse(user_id=user_id, email=teacher.email, role="teacher", generated_password=generated)


@router.get("/", response_model=list[TeacherResponse])
def get_teachers(
    user: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """All teachers, newest first. Admin only."""
    try:
        result = client.table("teachers").select("*").order("created_at", desc=True).execute()
        return result.data
    except Exception:
        logger.exception("Get teachers error")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{teacher_id}", response_model=TeacherResponse)
def get_teacher(
    teacher_id: str,
    user: dict = Depends(require_admin_or_teacher),
    client: Client = Depends(get_supabase),
):
    """Admins can view any teacher, teachers only themselves."""
    if user["role"] == "teacher" and user["id"] != teacher_id:
        raise HTTPException(status_code=403, detail="Access denied")

    result = client.table("teachers").select("*").eq("id", teacher_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Teacher not found")
    return result.data[0]


@router.patch("/{teacher_id}", response_model=TeacherResponse)
def update_teacher(
    teacher_id: str,
    teacher: TeacherPatch,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    update_data = teacher.model_dump(exclude_unset=True)
    if not update_data:
        return get_teacher(teacher_id, admin, client)

    result = client.table("teachers").update(update_data).eq("id", teacher_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Teacher not found")

    if "name" in update_data:
        client.table("profiles").update({"full_name": update_data["name"]}).eq("id", teacher_id).execute()
    return result.data[0]


@router.delete("/{teacher_id}")
def delete_teacher(
    teacher_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """Delete the teacher record and account. Admin only."""
    result = client.table("teachers").delete().eq("id", teacher_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Teacher not found")

    classes = client.table("classes").select("id, teacher_ids").contains("teacher_ids", [teacher_id]).execute()
    for cls in classes.data:
        remaining = [t for t in cls["teacher_ids"] if t != teacher_id]
        client.table("classes").update({"teacher_ids": remaining}).eq("id", cls["id"]).execute()

    delete_account(client, teacher_id)
    logger.info("Teacher %s deleted", teacher_id)
    return {"message": "Teacher deleted successfully", "teacher_id": teacher_id}
