from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime


def _name(v):
    if v is None or not v.strip():
        raise ValueError("Name cannot be empty")
    return v.strip()


# Teachers
class TeacherCreate(BaseModel):
    name: str
    email: str
    password: Optional[str] = None
    phone: Optional[str] = None
    subjects: List[str] = []

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        return _name(v)


class TeacherPatch(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    subjects: Optional[List[str]] = None

    class Config:
        extra = "forbid"

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        return v if v is None else _name(v)


class TeacherResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subjects: List[str] = []
    created_at: Optional[datetime] = None


# Students
class Attendance(BaseModel):
    total_days: int = Field(..., ge=0)
    present_days: int = Field(..., ge=0)

    @model_validator(mode="after")
    def present_within_total(self):
        if self.present_days > self.total_days:
            raise ValueError("present_days cannot exceed total_days")
        return self


class StudentCreate(BaseModel):
    name: str
    email: str
    password: Optional[str] = None
    student_id: Optional[str] = None
    roll_number: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        return _name(v)


class StudentPatch(BaseModel):
    name: Optional[str] = None
    student_id: Optional[str] = None
    roll_number: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        return v if v is None else _name(v)


class StudentSelfPatch(BaseModel):
    """What a student may change on their own record."""
    name: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        return v if v is None else _name(v)


class StudentResponse(BaseModel):
    id: str
    name: str
    email: str
    student_id: Optional[str] = None
    roll_number: Optional[str] = None
    enrolled_classes: List[str] = []
    attendance: Optional[Attendance] = None
    created_at: Optional[datetime] = None


class AccountCreatedResponse(BaseModel):
    user_id: str
    email: str
    role: str
    generated_password: Optional[str] = None
