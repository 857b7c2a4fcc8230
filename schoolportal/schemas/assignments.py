from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional
from datetime import date, datetime

from schoolportal.core.lifecycle import parse_time
from schoolportal.schemas.submissions import SubmissionResponse

Priority = Literal["low", "medium", "high"]
AssignmentType = Literal["assignment", "quiz", "material"]
AssignmentStatus = Literal["pending", "submitted", "graded"]


def _required_text(v, field):
    if v is None or not str(v).strip():
        raise ValueError(f"{field} cannot be empty")
    return str(v).strip()


def _due_time(v):
    if v is None or str(v).strip() == "":
        return None
    try:
        parse_time(v)
    except Exception:
        raise ValueError("due_time must be HH:MM")
    return str(v).strip()


class AssignmentCreate(BaseModel):
    class_id: str
    title: str
    subject: str
    due_date: date
    due_time: Optional[str] = None
    description: Optional[str] = None
    points: Optional[int] = Field(None, ge=0)
    priority: Priority = "medium"
    assignment_type: AssignmentType = "assignment"

    @field_validator("title", "subject", "class_id")
    @classmethod
    def not_empty(cls, v, info):
        return _required_text(v, info.field_name)

    @field_validator("due_time")
    @classmethod
    def valid_due_time(cls, v):
        return _due_time(v)


class AssignmentPatch(BaseModel):
    """Fields a teacher may change on an existing assignment. Anything else is rejected."""
    title: Optional[str] = None
    subject: Optional[str] = None
    class_id: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    due_time: Optional[str] = None
    points: Optional[int] = Field(None, ge=0)
    priority: Optional[Priority] = None
    assignment_type: Optional[AssignmentType] = None
    status: Optional[AssignmentStatus] = None

    class Config:
        extra = "forbid"

    @field_validator("title", "subject", "class_id")
    @classmethod
    def not_empty(cls, v, info):
        if v is None:
            return v
        return _required_text(v, info.field_name)

    @field_validator("due_time")
    @classmethod
    def valid_due_time(cls, v):
        return _due_time(v)


class AssignmentResponse(BaseModel):
    id: str
    teacher_id: str
    class_id: str
    title: str
    subject: str
    description: Optional[str] = None
    points: Optional[int] = None
    material: Optional[str] = None
    priority: Priority = "medium"
    assignment_type: AssignmentType = "assignment"
    due_date: date
    due_time: Optional[str] = None
    status: AssignmentStatus = "pending"
    effective_status: Optional[str] = None
    submissions_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class StudentAssignmentResponse(AssignmentResponse):
    """An assignment as one student sees it: status derived from their own submission."""
    submission: Optional[SubmissionResponse] = None
    action: Optional[str] = None


class AssignmentDeleteResponse(BaseModel):
    message: str
    deleted_submissions: int
