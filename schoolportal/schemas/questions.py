from pydantic import BaseModel, field_validator
from typing import Literal, Optional
from datetime import datetime

QuestionStatus = Literal["new", "in-progress", "resolved", "closed"]


class QuestionCreate(BaseModel):
    full_name: str
    contact_number: str
    email: str
    question: str

    @field_validator("full_name", "contact_number", "email", "question")
    @classmethod
    def not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class QuestionUpdate(BaseModel):
    status: QuestionStatus
    answer: Optional[str] = None

    class Config:
        extra = "forbid"


class QuestionResponse(BaseModel):
    id: str
    full_name: str
    contact_number: str
    email: str
    question: str
    answer: Optional[str] = None
    status: QuestionStatus
    created_at: datetime
