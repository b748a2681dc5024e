"""Subscription model: one row per user, written by billing events."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Subscription(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", unique=True, nullable=False)
    tier: str = Field(default="free", nullable=False)  # free | pro | business
    status: str = Field(default="active", nullable=False)  # active | inactive | canceled
    customer_id: Optional[str] = None  # billing provider customer id
