from pydantic import BaseModel, field_validator, model_validator
from typing import Literal, Optional
from datetime import datetime


class MeetingCreate(BaseModel):
    title: str
    class_id: str
    mode: Literal["instant", "scheduled"] = "scheduled"
    time: Optional[datetime] = None
    description: Optional[str] = None
    access_token: str

    @field_validator("title", "class_id", "access_token")
    @classmethod
    def not_empty(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def scheduled_needs_time(self):
        if self.mode == "scheduled" and self.time is None:
            raise ValueError("time is required for scheduled meetings")
        return self


class MeetingResponse(BaseModel):
    id: str
    title: str
    link: str
    event_id: Optional[str] = None
    time: datetime
    class_id: str
    description: Optional[str] = None
    created_by: str
    created_at: datetime
