from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
from typing import Optional
import logging

from pydantic import BaseModel, field_validator

from schoolportal.core.dependencies import require_admin
from schoolportal.db.supabase import get_supabase
from schoolportal.modules.admin.accounts import create_account
from schoolportal.schemas.people import AccountCreatedResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


class BootstrapRequest(BaseModel):
    email: str
    full_name: str
    password: Optional[str] = None

    @field_validator("email", "full_name")
    @classmethod
    def not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


def _count(client: Client, table: str, **filters) -> int:
    query = client.table(table).select("id", count="exact")
    for column, value in filters.items():
        query = query.eq(column, value)
    result = query.execute()
    return result.count if result.count is not None else len(result.data)


@router.post("/bootstrap", response_model=AccountCreatedResponse, status_code=201)
def bootstrap_admin(
    user_data: BootstrapRequest,
    client: Client = Depends(get_supabase),
):
    """
    Bootstrap the first admin user. No authentication required.
    Only works when no users exist in the system.
    """
    if _count(client, "profiles") > 0:
        raise HTTPException(status_code=403, detail="Bootstrap only available for first user creation")

    user_id, generated = create_account(client, user_data.email, user_data.full_name, "admin", user_data.password)
    logger.info("Bootstrapped admin %s", user_id)
    return AccountCreatedResponse(user_id=user_id, email=user_data.email, role="admin", generated_password=generated)


@router.get("/metrics")
def get_admin_metrics(
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """Headline counts for the admin dashboard."""
    try:
        return {
            "total_users": _count(client, "profiles"),
            "teachers": _count(client, "teachers"),
            "students": _count(client, "students"),
            "classes": _count(client, "classes"),
            "subjects": _count(client, "subjects"),
            "assignments": _count(client, "assignments"),
            "submissions": _count(client, "submissions"),
            "graded_submissions": _count(client, "submissions", status="graded"),
            "meetings": _count(client, "meetings"),
            "pending_admissions": _count(client, "admissions", application_status="pending"),
            "open_questions": _count(client, "questions", status="new"),
        }
    except Exception:
        logger.exception("Get metrics error")
        raise HTTPException(status_code=500, detail="Internal server error")
