"""
Vote ledger: one vote per (request, identity), with the request's
``votes_count`` kept equal to its number of vote rows.

A toggle runs entirely inside the caller's transaction and starts by locking
the request row, so concurrent toggles on the same request are applied one
after another. The counter is adjusted with a SQL expression
(``votes_count + 1``), never with a value computed in Python from an
earlier read.
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Conflict, NotFound
from app.models.base import utcnow
from app.models.request import FeatureRequest
from app.models.vote import Vote
from feedbackhub_shared.schemas.requests import VoteResult

log = structlog.get_logger()


async def lock_requests(
    session: AsyncSession, request_ids: Sequence[uuid.UUID]
) -> dict[uuid.UUID, FeatureRequest]:
    """SELECT ... FOR UPDATE the given requests, in id order, and return the ones that exist."""
    result = await session.execute(
        select(FeatureRequest)
        .where(FeatureRequest.id.in_(list(request_ids)))
        .order_by(FeatureRequest.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {r.id: r for r in result.scalars().all()}


async def _find_vote(
    session: AsyncSession, request_id: uuid.UUID, identity: str
) -> Optional[Vote]:
    result = await session.execute(
        select(Vote).where(Vote.request_id == request_id, Vote.identity == identity)
    )
    return result.scalar_one_or_none()


async def toggle_vote(
    session: AsyncSession,
    request_id: uuid.UUID,
    identity: str,
    *,
    ip_address: Optional[str] = None,
) -> VoteResult:
    """Add the identity's vote if absent, remove it if present."""
    locked = await lock_requests(session, [request_id])
    request = locked.get(request_id)
    if request is None:
        raise NotFound("Request not found")

    existing = await _find_vote(session, request_id, identity)
    if existing is not None:
        await session.delete(existing)
        delta = -1
    else:
        session.add(Vote(request_id=request_id, identity=identity, ip_address=ip_address))
        delta = 1

    try:
        await session.flush()
    except IntegrityError:
        # Only reachable if the row lock was bypassed; surface, don't double count.
        log.warning("vote.duplicate", request_id=str(request_id))
        raise Conflict("A vote from this identity already exists")

    await session.execute(
        update(FeatureRequest)
        .where(FeatureRequest.id == request_id)
        .values(votes_count=FeatureRequest.votes_count + delta, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await session.refresh(request, attribute_names=["votes_count", "updated_at"])

    voted = delta > 0
    log.info(
        "vote.toggled",
        request_id=str(request_id),
        voted=voted,
        votes=request.votes_count,
    )
    return VoteResult(voted=voted, votes=request.votes_count)


async def count_votes(session: AsyncSession, request_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Vote).where(Vote.request_id == request_id)
    )
    return result.scalar_one()
