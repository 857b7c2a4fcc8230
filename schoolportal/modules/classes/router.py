from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client
from datetime import datetime, timezone
from typing import Optional
import logging
import uuid

from schoolportal.core.dependencies import require_admin
from schoolportal.core.security import get_current_user
from schoolportal.db.supabase import get_supabase
from schoolportal.schemas.classes import (
    ClassCreate,
    ClassPatch,
    ClassResponse,
    EnrollmentRequest,
    EnrollmentResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Classes"])


# -------------------------
# HELPERS
# -------------------------
def fetch_class(client: Client, class_id: str) -> dict:
    result = client.table("classes").select("*").eq("id", class_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Class not found")
    return result.data[0]


def fetch_student(client: Client, student_id: str) -> dict:
    result = client.table("students").select("*").eq("id", student_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Student not found")
    return result.data[0]


def matches_search(class_obj: dict, term: str) -> bool:
    term = term.lower()
    return term in (class_obj.get("name") or "").lower() or any(
        term in teacher_id.lower() for teacher_id in class_obj.get("teacher_ids") or []
    )


# -------------------------
# CREATE CLASS (ADMIN)
# -------------------------
@router.post("/", response_model=ClassResponse, status_code=201)
def create_class(
    class_data: ClassCreate,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    class_dict = {
        "id": str(uuid.uuid4()),
        "name": class_data.name,
        "capacity": class_data.capacity,
        "student_count": 0,
        "teacher_ids": class_data.teacher_ids,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }

    result = client.table("classes").insert(class_dict).execute()
    logger.info("Class %s created", class_dict["id"])
    return result.data[0]


# -------------------------
# GET CLASSES (ROLE BASED)
# -------------------------
@router.get("/", response_model=list[ClassResponse])
def get_classes(
    search: Optional[str] = Query(None, description="Match on class name or teacher id"),
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    # ADMIN: see all classes
    if user["role"] == "admin":
        classes = client.table("classes").select("*").order("created_at", desc=True).execute().data

    # TEACHER: see own classes
    elif user["role"] == "teacher":
        classes = (
            client
            .table("classes")
            .select("*")
            .contains("teacher_ids", [user["id"]])
            .order("created_at")
            .execute()
        ).data

    # STUDENT: see enrolled classes
    else:
        class_ids = fetch_student(client, user["id"]).get("enrolled_classes") or []
        if not class_ids:
            return []
        classes = client.table("classes").select("*").in_("id", class_ids).execute().data

    if search:
        classes = [c for c in classes if matches_search(c, search)]
    return classes


# -------------------------
# GET SINGLE CLASS
# -------------------------
@router.get("/{class_id}", response_model=ClassResponse)
def get_class(
    class_id: str,
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    class_obj = fetch_class(client, class_id)

    if user["role"] == "teacher" and user["id"] not in (class_obj.get("teacher_ids") or []):
        raise HTTPException(status_code=403, detail="Access denied")

    if user["role"] == "student":
        if class_id not in (fetch_student(client, user["id"]).get("enrolled_classes") or []):
            raise HTTPException(status_code=403, detail="Not enrolled in this class")

    return class_obj


# -------------------------
# UPDATE CLASS (ADMIN)
# -------------------------
@router.patch("/{class_id}", response_model=ClassResponse)
def update_class(
    class_id: str,
    class_data: ClassPatch,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    update_data = class_data.model_dump(exclude_unset=True)
    if update_data.get("capacity") is not None:
        current = fetch_class(client, class_id)
        if update_data["capacity"] < (current.get("student_count") or 0):
            raise HTTPException(status_code=400, detail="Capacity cannot be lower than the current student count")

    if not update_data:
        return fetch_class(client, class_id)

    result = client.table("classes").update(update_data).eq("id", class_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Class not found")
    return result.data[0]


# -------------------------
# DELETE CLASS (ADMIN)
# -------------------------
@router.delete("/{class_id}")
def delete_class(
    class_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    result = client.table("classes").delete().eq("id", class_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Class not found")

    # Drop the class from every enrolled student's list
    students = client.table("students").select("id, enrolled_classes").contains("enrolled_classes", [class_id]).execute()
    for student in students.data:
        remaining = [c for c in student["enrolled_classes"] if c != class_id]
        client.table("students").update({"enrolled_classes": remaining}).eq("id", student["id"]).execute()

    client.table("posts").delete().eq("class_id", class_id).execute()

    logger.info("Class %s deleted, %d students unenrolled", class_id, len(students.data))
    return {"message": "Class deleted successfully"}


# -------------------------
# ENROLL STUDENT IN CLASS
# -------------------------
@router.post("/{class_id}/students", response_model=EnrollmentResponse)
def add_student_to_class(
    class_id: str,
    enrollment: EnrollmentRequest,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """Enroll a student. Enrolling twice is a no-op; a full class is rejected."""
    class_obj = fetch_class(client, class_id)
    student = fetch_student(client, enrollment.student_id)
    enrolled = student.get("enrolled_classes") or []
    count = class_obj.get("student_count") or 0

    if class_id not in enrolled:
        if count >= class_obj["capacity"]:
            raise HTTPException(status_code=400, detail="Class is at full capacity")
        enrolled = enrolled + [class_id]
        count += 1
        client.table("students").update({"enrolled_classes": enrolled}).eq("id", student["id"]).execute()
        client.table("classes").update({"student_count": count}).eq("id", class_id).execute()
        logger.info("Student %s enrolled in class %s", student["id"], class_id)

    return EnrollmentResponse(class_id=class_id, student_id=student["id"], student_count=count, enrolled_classes=enrolled)


# -------------------------
# REMOVE STUDENT FROM CLASS
# -------------------------
@router.delete("/{class_id}/students/{student_id}", response_model=EnrollmentResponse)
def remove_student_from_class(
    class_id: str,
    student_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    class_obj = fetch_class(client, class_id)
    student = fetch_student(client, student_id)
    enrolled = student.get("enrolled_classes") or []
    if class_id not in enrolled:
        raise HTTPException(status_code=404, detail="Enrollment not found")

    enrolled = [c for c in enrolled if c != class_id]
    count = max((class_obj.get("student_count") or 0) - 1, 0)
    client.table("students").update({"enrolled_classes": enrolled}).eq("id", student_id).execute()
    client.table("classes").update({"student_count": count}).eq("id", class_id).execute()
    logger.info("Student %s removed from class %s", student_id, class_id)

    return EnrollmentResponse(class_id=class_id, student_id=student_id, student_count=count, enrolled_classes=enrolled)
