"""Comment model."""

import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Comment(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "comments"

    request_id: uuid.UUID = Field(foreign_key="requests.id", ondelete="CASCADE", nullable=False, index=True)
    author_name: str = Field(nullable=False)
    author_email: str = Field(nullable=False)
    content: str = Field(nullable=False)
