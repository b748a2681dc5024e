"""Vote model: at most one row per (request, identity)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Vote(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "votes"
    __table_args__ = (
        sa.UniqueConstraint("request_id", "identity", name="uq_votes_request_identity"),
    )

    request_id: uuid.UUID = Field(foreign_key="requests.id", ondelete="CASCADE", nullable=False, index=True)
    identity: str = Field(nullable=False)  # voter email or address-derived synthetic email
    ip_address: Optional[str] = None
