from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from supabase import Client
from datetime import datetime, timezone
from typing import Optional
import logging
import uuid

from pydantic import TypeAdapter

from schoolportal.core.dependencies import require_admin
from schoolportal.db.storage import ADMISSIONS_PREFIX, read_upload, upload_file
from schoolportal.db.supabase import get_supabase
from schoolportal.schemas.admissions import (
    AdmissionCreate,
    AdmissionResponse,
    AdmissionStatusUpdate,
    ApplicationStatus,
    DocumentKind,
    DocumentUploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admissions"])

_document_kind = TypeAdapter(DocumentKind)


# -------------------------
# PUBLIC INTAKE
# -------------------------
@router.post("/", response_model=AdmissionResponse, status_code=201)
def submit_application(
    application: AdmissionCreate,
    client: Client = Depends(get_supabase),
):
    """Submit an admission application. No sign-in required."""
    now = datetime.now(timezone.utc).isoformat()
    record = application.model_dump()
    record.update({
        "id": str(uuid.uuid4()),
        "application_status": "pending",
        "application_date": now,
        "last_updated": now,
    })

    result = client.table("admissions").insert(record).execute()
    logger.info("Admission application %s received", record["id"])
    return result.data[0]


@router.post("/documents", response_model=DocumentUploadResponse, status_code=201)
def upload_document(
    kind: str = Form(...),
    file: UploadFile = File(...),
    client: Client = Depends(get_supabase),
):
    """
    Upload one application document and return its URL, to be referenced
    from ``documents`` when the application is submitted.
    """
    kind = _document_kind.validate_python(kind)
    url = upload_file(client, f"{ADMISSIONS_PREFIX}/{kind}", read_upload(file), separator="-")
    return DocumentUploadResponse(kind=kind, url=url)


# -------------------------
# ADMIN REVIEW
# -------------------------
@router.get("/", response_model=list[AdmissionResponse])
def get_applications(
    status: Optional[ApplicationStatus] = Query(None),
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    try:
        query = client.table("admissions").select("*")
        if status:
            query = query.eq("application_status", status)
        return query.order("application_date", desc=True).execute().data
    except Exception:
        logger.exception("Get admissions error")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{admission_id}", response_model=AdmissionResponse)
def get_application(
    admission_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    result = client.table("admissions").select("*").eq("id", admission_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Application not found")
    return result.data[0]


@router.patch("/{admission_id}/status", response_model=AdmissionResponse)
def update_application_status(
    admission_id: str,
    update: AdmissionStatusUpdate,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    result = client.table("admissions").update({
        "application_status": update.application_status,
        "last_updated": datetime.now(timezone.utc).isoformat(),
    }).eq("id", admission_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Application not found")

    logger.info("Admission %s marked %s", admission_id, update.application_status)
    return result.data[0]


@router.delete("/{admission_id}")
def delete_application(
    admission_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    result = client.table("admissions").delete().eq("id", admission_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Application not found")
    return {"message": "Application deleted successfully"}
