"""Feature request model."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class FeatureRequest(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "requests"

    board_id: uuid.UUID = Field(foreign_key="boards.id", ondelete="CASCADE", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    category: str = Field(default="feature", nullable=False)  # feature | bug | improvement
    status: str = Field(default="open", nullable=False)  # open | planned | in_progress | completed | rejected
    # Denormalized; equals the number of Vote rows for this request after every commit.
    votes_count: int = Field(default=0, nullable=False, index=True)
