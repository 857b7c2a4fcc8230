from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Literal, Optional, Union
from datetime import datetime

ApplicationStatus = Literal["pending", "approved", "rejected"]
DocumentKind = Literal[
    "profile_picture",
    "previous_marksheets",
    "character_certificate",
    "identity_proof",
    "residence_proof",
]


class PersonalInfo(BaseModel):
    name: str
    email: str
    phone_no: str
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    whatsapp_no: Optional[str] = None
    father_name: Optional[str] = None
    father_occupation: Optional[str] = None
    father_contact: Optional[str] = None
    mother_name: Optional[str] = None
    mother_occupation: Optional[str] = None
    mother_contact: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    nationality: Optional[str] = None

    @field_validator("name", "email", "phone_no")
    @classmethod
    def required_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class PreviousSchool(BaseModel):
    school_name: str
    from_year: Optional[str] = None
    to_year: Optional[str] = None
    grade: Optional[str] = None
    board: Optional[str] = None
    percentage: Optional[str] = None


class AcademicHistory(BaseModel):
    previous_schools: List[PreviousSchool] = []
    currently_enrolled: bool = False
    current_institution: Optional[str] = None
    last_completed_grade: Optional[str] = None
    achievements: List[str] = []
    extracurriculars: List[str] = []


class ProgramPreferences(BaseModel):
    desired_class: str
    desired_program: Optional[str] = None
    stream: Optional[str] = None
    subjects: List[str] = []
    reason_for_joining: Optional[str] = None
    career_goals: Optional[str] = None


class EmergencyContact(BaseModel):
    name: str
    relationship: Optional[str] = None
    phone_no: str
    address: Optional[str] = None


class AdmissionCreate(BaseModel):
    personal_info: PersonalInfo
    program_preferences: ProgramPreferences
    academic_history: Optional[AcademicHistory] = None
    emergency_contact: Optional[EmergencyContact] = None
    # kind -> URL returned by POST /admissions/documents (marksheets may be several)
    documents: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)


class AdmissionStatusUpdate(BaseModel):
    application_status: ApplicationStatus


class AdmissionResponse(BaseModel):
    id: str
    personal_info: PersonalInfo
    program_preferences: ProgramPreferences
    academic_history: Optional[AcademicHistory] = None
    emergency_contact: Optional[EmergencyContact] = None
    documents: Dict[str, Union[str, List[str]]] = {}
    application_status: ApplicationStatus
    application_date: datetime
    last_updated: Optional[datetime] = None


class DocumentUploadResponse(BaseModel):
    kind: DocumentKind
    url: str
