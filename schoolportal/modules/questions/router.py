from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client
from datetime import datetime, timezone
from typing import Optional
import logging
import uuid

from schoolportal.core.dependencies import require_admin
from schoolportal.db.supabase import get_supabase
from schoolportal.schemas.questions import (
    QuestionCreate,
    QuestionResponse,
    QuestionStatus,
    QuestionUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Questions"])


@router.post("/", response_model=QuestionResponse, status_code=201)
def ask_question(
    question: QuestionCreate,
    client: Client = Depends(get_supabase),
):
    """Public contact form."""
    record = question.model_dump()
    record.update({
        "id": str(uuid.uuid4()),
        "status": "new",
        "answer": None,
        "created_at": datetime.now(timezone.utc).isoformat(),
    })
    result = client.table("questions").insert(record).execute()
    logger.info("Question %s received", record["id"])
    return result.data[0]


@router.get("/", response_model=list[QuestionResponse])
def get_questions(
    status: Optional[QuestionStatus] = Query(None),
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    try:
        query = client.table("questions").select("*")
        if status:
            query = query.eq("status", status)
        return query.order("created_at", desc=True).execute().data
    except Exception:
        logger.exception("Get questions error")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: str,
    update: QuestionUpdate,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    """Move a question along; an answer is only written when one is given."""
    update_data = {"status": update.status}
    if update.answer:
        update_data["answer"] = update.answer

    result = client.table("questions").update(update_data).eq("id", question_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Question not found")
    return result.data[0]


@router.delete("/{question_id}")
def delete_question(
    question_id: str,
    admin: dict = Depends(require_admin),
    client: Client = Depends(get_supabase),
):
    result = client.table("questions").delete().eq("id", question_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Question not found")
    return {"message": "Question deleted successfully"}
