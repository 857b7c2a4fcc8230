from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime


class SubjectCreate(BaseModel):
    name: str
    code: Optional[str] = None
    board: Optional[str] = None
    fields: List[str] = []
    syllabus: Optional[str] = None
    level: Optional[str] = None
    year: Optional[int] = None
    order: int = 0

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Subject name cannot be empty")
        return v.strip()


class SubjectPatch(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    board: Optional[str] = None
    fields: Optional[List[str]] = None
    syllabus: Optional[str] = None
    level: Optional[str] = None
    year: Optional[int] = None
    order: Optional[int] = None

    class Config:
        extra = "forbid"

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Subject name cannot be empty")
        return v.strip() if v else v


class SubjectResponse(BaseModel):
    id: str
    name: str
    code: Optional[str] = None
    board: Optional[str] = None
    fields: List[str] = []
    syllabus: Optional[str] = None
    level: Optional[str] = None
    year: Optional[int] = None
    order: int = 0
    created_at: Optional[datetime] = None
