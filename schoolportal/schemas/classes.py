from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


class ClassCreate(BaseModel):
    name: str
    capacity: int = Field(..., ge=1)
    teacher_ids: List[str] = []

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Class name cannot be empty")
        return v.strip()


class ClassPatch(BaseModel):
    name: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    teacher_ids: Optional[List[str]] = None

    class Config:
        extra = "forbid"

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Class name cannot be empty")
        return v.strip() if v else v


class ClassResponse(BaseModel):
    id: str
    name: str
    capacity: int
    student_count: int = 0
    teacher_ids: List[str] = []
    created_at: Optional[datetime] = None


class EnrollmentRequest(BaseModel):
    student_id: str


class EnrollmentResponse(BaseModel):
    class_id: str
    student_id: str
    student_count: int
    enrolled_classes: List[str]
