from pydantic import BaseModel, field_validator
from typing import List, Literal, Optional
from datetime import datetime


class SubmissionCreate(BaseModel):
    assignment_id: str
    content: str
    attachments: List[str] = []

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Submission content cannot be empty")
        return v

    @field_validator("attachments")
    @classmethod
    def attachments_are_urls(cls, v):
        return [url.strip() for url in v if url and url.strip()]


class GradeRequest(BaseModel):
    grade: float
    feedback: Optional[str] = None


class SubmissionResponse(BaseModel):
    id: str
    assignment_id: str
    student_id: str
    content: str
    attachments: List[str] = []
    submitted_at: datetime
    status: Literal["submitted", "graded"] = "submitted"
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[str] = None


class AttachmentResponse(BaseModel):
    url: str
