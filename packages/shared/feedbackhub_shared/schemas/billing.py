"""
Billing schemas: subscription state, plan limits, and the normalized
billing-provider event consumed by the server.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import SubscriptionStatus, SubscriptionTier


class TierLimits(BaseModel):
    """Resource ceilings for a tier. ``None`` means unbounded."""

    model_config = ConfigDict(frozen=True)

    max_boards: Optional[int] = None
    max_requests_per_board: Optional[int] = None


PLAN_LIMITS: dict[SubscriptionTier, TierLimits] = {
    SubscriptionTier.FREE: TierLimits(max_boards=1, max_requests_per_board=100),
    SubscriptionTier.PRO: TierLimits(),
    SubscriptionTier.BUSINESS: TierLimits(),
}


# Provider-side subscription states that count as a paying, active plan.
LIVE_PROVIDER_STATUSES = frozenset({"active", "trialing"})


class BillingEvent(BaseModel):
    """A subscription lifecycle event, already verified and decoded upstream.

    ``type`` follows the provider's naming
    (``customer.subscription.created|updated|deleted``).
    """

    type: str = Field(pattern=r"^customer\.subscription\.(created|updated|deleted)$")
    user_id: uuid.UUID
    customer_id: str = Field(min_length=1, max_length=255)
    tier: SubscriptionTier = SubscriptionTier.FREE
    provider_status: str = "active"


class SubscriptionRead(BaseModel):
    user_id: uuid.UUID
    tier: SubscriptionTier
    status: SubscriptionStatus
    customer_id: Optional[str] = None
    limits: TierLimits
    updated_at: Optional[datetime] = None
