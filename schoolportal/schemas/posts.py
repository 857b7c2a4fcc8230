from pydantic import BaseModel, field_validator
from typing import Literal
from datetime import datetime

PostType = Literal["announcement", "general"]


class PostCreate(BaseModel):
    class_id: str
    title: str
    message: str
    type: PostType = "general"

    @field_validator("title", "message")
    @classmethod
    def not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class PostResponse(BaseModel):
    id: str
    class_id: str
    title: str
    message: str
    type: PostType
    teacher_id: str
    created_at: datetime
