"""
Billing service: apply subscription lifecycle events from the billing
provider and expose the resulting plan to the owner.

The provider integration itself (checkout sessions, signature verification)
happens upstream; this module only receives normalized ``BillingEvent``s.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFound
from app.models.subscription import Subscription
from app.models.user import User
from app.services.tiers import get_user_subscription, limits_for
from feedbackhub_shared.schemas.billing import (
    LIVE_PROVIDER_STATUSES,
    BillingEvent,
    SubscriptionRead,
)
from feedbackhub_shared.schemas.common import SubscriptionStatus, SubscriptionTier

log = structlog.get_logger()


def resolve_plan(event: BillingEvent) -> tuple[SubscriptionTier, SubscriptionStatus]:
    """Map a provider event to the (tier, status) we store."""
    if event.type == "customer.subscription.deleted":
        return SubscriptionTier.FREE, SubscriptionStatus.CANCELED
    if event.provider_status in LIVE_PROVIDER_STATUSES:
        return event.tier, SubscriptionStatus.ACTIVE
    return event.tier, SubscriptionStatus.INACTIVE


async def apply_billing_event(session: AsyncSession, event: BillingEvent) -> Subscription:
    """Upsert the user's single subscription row from ``event``."""
    # The owner row serializes first events, when no subscription row exists to lock yet.
    locked = await session.execute(
        select(User.id).where(User.id == event.user_id).with_for_update()
    )
    if locked.scalar_one_or_none() is None:
        raise NotFound("User not found")

    tier, status = resolve_plan(event)

    result = await session.execute(
        select(Subscription)
        .where(Subscription.user_id == event.user_id)
        .execution_options(populate_existing=True)
    )
    subscription = result.scalar_one_or_none()
    if subscription is None:
        subscription = Subscription(user_id=event.user_id)

    subscription.tier = tier.value
    subscription.status = status.value
    subscription.customer_id = event.customer_id
    session.add(subscription)
    await session.flush()

    log.info(
        "billing.subscription_upserted",
        event_type=event.type,
        user_id=str(event.user_id),
        tier=tier.value,
        status=status.value,
    )
    return subscription


async def get_subscription_view(session: AsyncSession, user_id: uuid.UUID) -> SubscriptionRead:
    """The caller's plan; users without a row are on an active free plan."""
    subscription = await get_user_subscription(session, user_id)
    if subscription is None:
        tier, status = SubscriptionTier.FREE, SubscriptionStatus.ACTIVE
        return SubscriptionRead(user_id=user_id, tier=tier, status=status, limits=limits_for(tier))

    status = SubscriptionStatus(subscription.status)
    tier = SubscriptionTier(subscription.tier)
    effective = tier if status == SubscriptionStatus.ACTIVE else SubscriptionTier.FREE
    return SubscriptionRead(
        user_id=user_id,
        tier=tier,
        status=status,
        customer_id=subscription.customer_id,
        limits=limits_for(effective),
        updated_at=subscription.updated_at,
    )
