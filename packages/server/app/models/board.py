"""Board model: a public voting board owned by one user."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Board(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "boards"

    slug: str = Field(unique=True, nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
