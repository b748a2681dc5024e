from pydantic import BaseModel, EmailStr, Field
from uuid import UUID
from datetime import datetime


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
    author_name: str = Field(min_length=1, max_length=100)
    author_email: EmailStr


class CommentRead(BaseModel):
    id: UUID
    request_id: UUID
    author_name: str
    author_email: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}
