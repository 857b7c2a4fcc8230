from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
from datetime import datetime, timezone
import logging

from schoolportal.core.dependencies import require_admin, require_student
from schoolportal.core.security import get_current_user
from schoolportal.db.supabase import get_supabase
from schoolportal.modules.admin.accounts import create_account, delete_account
from schoolportal.schemas.people import (
    AccountCreatedResponse,
    Attendance,
    StudentCreate,
    StudentPatch,
    StudentResponse,
    StudentSelfPatch,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Students"])


def _update_student(client: Client, student_id: str, update_data: dict) -> dict:
    result = client.table("students").update(update_data).eq("id", student_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Student not found")
    if "name" in update_data:
        client.table("profiles").update({"full_name": update_data["name"]}).eq("id", student_id).execute()
    return result.data[0]


@router.post("/", response_model=AccountCreatedResponse, status_code=201)
def create_student(
    student: StudentCreate,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """
    Create a student account. Admin only.
    A password is generated and returned when none is given.
    """
    user_id, generated = create_account(client, student.email, student.name, "student", student.password)
    try:
        client.table("students").insert({
            "id": user_id,
            "name": student.name,
            "email": student.email,
            "student_id": student.student_id,
            "roll_number": student.roll_number,
            "enrolled_classes": [],
            "attendance": {"total_days": 0, "present_days": 0},
            "created_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
    except Exception as e:
        logger.error("Student record creation failed for %s: %s", user_id, e)
        delete_account(client, user_id)
        raise HTTPException(status_code=500, detail="Failed to create student record")

    return AccountCreatedResponse(user_id=user_id, email=student.email, role="student", generated_password=generated)


@router.get("/", response_model=list[StudentResponse])
def get_students(
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """All students, newest first. Admin only."""
    try:
        result = client.table("students").select("*").order("created_at", desc=True).execute()
        return result.data
    except Exception:
        logger.exception("Get students error")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/class/{class_id}", response_model=list[StudentResponse])
def get_class_students(
    class_id: str,
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    """Students enrolled in a class. Admins and teachers of the class."""
    if user["role"] == "student":
        raise HTTPException(status_code=403, detail="Access denied")

    class_result = client.table("classes").select("*").eq("id", class_id).execute()
    if not class_result.data:
        raise HTTPException(status_code=404, detail="Class not found")
    if user["role"] == "teacher" and user["id"] not in (class_result.data[0].get("teacher_ids") or []):
        raise HTTPException(status_code=403, detail="Access denied")

    result = client.table("students").select("*").contains("enrolled_classes", [class_id]).execute()
    return result.data


@router.get("/me", response_model=StudentResponse)
def get_my_record(
    user: dict = Depends(require_student),
    client: Client = Depends(get_supabase),
):
    result = client.table("students").select("*").eq("id", user["id"]).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Student not found")
    return result.data[0]


@router.patch("/me", response_model=StudentResponse)
def update_my_record(
    student: StudentSelfPatch,
    user: dict = Depends(require_student),
    client: Client = Depends(get_supabase),
):
    update_data = student.model_dump(exclude_unset=True)
    if not update_data:
        return get_my_record(user, client)
    return _update_student(client, user["id"], update_data)


@router.get("/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    result = client.table("students").select("*").eq("id", student_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Student not found")
    return result.data[0]


@router.patch("/{student_id}", response_model=StudentResponse)
def update_student(
    student_id: str,
    student: StudentPatch,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    update_data = student.model_dump(exclude_unset=True)
    if not update_data:
        return get_student(student_id, admin, client)
    return _update_student(client, student_id, update_data)


@router.put("/{student_id}/attendance", response_model=StudentResponse)
def update_attendance(
    student_id: str,
    attendance: Attendance,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """Record attendance totals for a student. Admin only."""
    return _update_student(client, student_id, {"attendance": attendance.model_dump()})


@router.delete("/{student_id}")
def delete_student(
    student_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """
    Delete the student record and account. Admin only.
    Class counts are decremented; submissions are kept as graded history.
    """
    result = client.table("students").delete().eq("id", student_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Student not found")

    for class_id in result.data[0].get("enrolled_classes") or []:
        class_result = client.table("classes").select("id, student_count").eq("id", class_id).execute()
        if class_result.data:
            count = max((class_result.data[0].get("student_count") or 0) - 1, 0)
            client.table("classes").update({"student_count": count}).eq("id", class_id).execute()

    delete_account(client, student_id)
    logger.info("Student %s deleted", student_id)
    return {"message": "Student deleted successfully", "student_id": student_id}
