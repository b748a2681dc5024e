"""
Tier policy: subscription tier -> resource ceilings, and the admission
checks that enforce them.

Ceiling checks count and insert inside the caller's transaction while
holding a row lock on the parent (the owner's user row for boards, the board
row for requests). Two concurrent creations for the same parent therefore
serialize, and the second one sees the first one's row in its count.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Forbidden
from app.models.board import Board
from app.models.request import FeatureRequest
from app.models.subscription import Subscription
from app.models.user import User
from feedbackhub_shared.schemas.billing import PLAN_LIMITS, TierLimits
from feedbackhub_shared.schemas.common import SubscriptionStatus, SubscriptionTier

log = structlog.get_logger()

UPGRADE_URL = "/pricing"


def limits_for(tier: SubscriptionTier) -> TierLimits:
    return PLAN_LIMITS[tier]


def within_limit(count: int, ceiling: Optional[int]) -> bool:
    """``None`` is unbounded."""
    return ceiling is None or count < ceiling


async def get_user_subscription(
    session: AsyncSession, user_id: uuid.UUID
) -> Optional[Subscription]:
    result = await session.execute(
        select(Subscription).where(Subscription.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_user_tier(session: AsyncSession, user_id: uuid.UUID) -> SubscriptionTier:
    """Tier of the user's active subscription; free when there is none."""
    result = await session.execute(
        select(Subscription.tier).where(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        )
    )
    tier = result.scalar_one_or_none()
    if tier is None:
        return SubscriptionTier.FREE
    try:
        return SubscriptionTier(tier)
    except ValueError:
        log.warning("tier.unknown", user_id=str(user_id), tier=tier)
        return SubscriptionTier.FREE


async def _count_boards(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Board).where(Board.user_id == user_id)
    )
    return result.scalar_one()


async def _count_requests(session: AsyncSession, board_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(FeatureRequest).where(FeatureRequest.board_id == board_id)
    )
    return result.scalar_one()


async def can_create_board(session: AsyncSession, user_id: uuid.UUID) -> bool:
    """Advisory check (no lock). Use ``reserve_board_slot`` before inserting."""
    limits = limits_for(await get_user_tier(session, user_id))
    if limits.max_boards is None:
        return True
    return within_limit(await _count_boards(session, user_id), limits.max_boards)


async def reserve_board_slot(session: AsyncSession, user_id: uuid.UUID) -> None:
    """Lock the owner row, then enforce ``max_boards``. Insert in the same transaction."""
    await session.execute(
        select(User.id).where(User.id == user_id).with_for_update()
    )
    tier = await get_user_tier(session, user_id)
    ceiling = limits_for(tier).max_boards
    if ceiling is None:
        return
    count = await _count_boards(session, user_id)
    if not within_limit(count, ceiling):
        log.info("tier.board_limit_reached", user_id=str(user_id), tier=tier.value, count=count)
        raise Forbidden(
            f"The {tier.value} plan is limited to {ceiling} board(s). "
            "Upgrade for unlimited boards.",
            details={"limit": ceiling, "upgrade_url": UPGRADE_URL},
        )


async def reserve_request_slot(session: AsyncSession, board_id: uuid.UUID) -> None:
    """Lock the board row, then enforce the owner's ``max_requests_per_board``."""
    result = await session.execute(
        select(Board.user_id).where(Board.id == board_id).with_for_update()
    )
    owner_id = result.scalar_one()
    tier = await get_user_tier(session, owner_id)
    ceiling = limits_for(tier).max_requests_per_board
    if ceiling is None:
        return
    count = await _count_requests(session, board_id)
    if not within_limit(count, ceiling):
        log.info("tier.request_limit_reached", board_id=str(board_id), tier=tier.value, count=count)
        raise Forbidden(
            f"This board has reached the {tier.value} plan limit of {ceiling} requests.",
            details={"limit": ceiling, "upgrade_url": UPGRADE_URL},
        )
