from typing import Optional
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime


class BoardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(
        min_length=2,
        max_length=50,
        pattern=r"^[a-z0-9-]+$",
        description="Lowercase letters, numbers, and hyphens",
    )
    description: Optional[str] = Field(default=None, max_length=500)


class BoardRead(BaseModel):
    id: UUID
    slug: str
    name: str
    description: Optional[str] = None
    user_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}
