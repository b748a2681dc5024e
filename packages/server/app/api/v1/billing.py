"""
Billing endpoints: provider event intake and the caller's current plan.
"""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import require_user
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import Forbidden
from app.models.user import User
from app.services import billing as billing_service
from feedbackhub_shared.schemas.billing import BillingEvent, SubscriptionRead

router = APIRouter()


def verify_billing_secret(
    x_billing_secret: Optional[str] = Header(None, alias="X-Billing-Secret"),
) -> None:
    expected = get_settings().billing_webhook_secret
    if not expected or not x_billing_secret:
        raise Forbidden("Billing events are not accepted")
    if not secrets.compare_digest(expected, x_billing_secret):
        raise Forbidden("Invalid billing secret")


@router.post("/events", dependencies=[Depends(verify_billing_secret)])
async def receive_billing_event(
    event: BillingEvent,
    session: AsyncSession = Depends(get_session),
):
    subscription = await billing_service.apply_billing_event(session, event)
    return {"received": True, "tier": subscription.tier, "status": subscription.status}


@router.get("/subscription", response_model=SubscriptionRead)
async def get_subscription(
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await billing_service.get_subscription_view(session, user.id)
