"""
Feature request service: listing, creation, status changes and deletion.

Vote counting and merging live in ``votes`` and ``consolidation``.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFound
from app.models.request import FeatureRequest
from app.models.user import User
from app.services.boards import get_board_by_slug
from app.services.ownership import require_request_ownership
from app.services.tiers import reserve_request_slot
from feedbackhub_shared.schemas.common import RequestSort, RequestStatus
from feedbackhub_shared.schemas.requests import (
    RequestCreate,
    RequestList,
    RequestListQuery,
    RequestRead,
)

log = structlog.get_logger()

SORT_ORDER = {
    RequestSort.VOTES: (FeatureRequest.votes_count.desc(), FeatureRequest.created_at.desc()),
    RequestSort.RECENT: (FeatureRequest.created_at.desc(),),
    RequestSort.OLDEST: (FeatureRequest.created_at.asc(),),
}


async def get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> FeatureRequest:
    request = await session.get(FeatureRequest, request_id)
    if not request:
        raise NotFound("Request not found")
    return request


async def list_requests(
    session: AsyncSession, slug: str, query: RequestListQuery
) -> RequestList:
    """Filtered, sorted, paginated requests of a board, plus the filtered total."""
    board = await get_board_by_slug(session, slug)

    conditions = [FeatureRequest.board_id == board.id]
    if query.status:
        conditions.append(FeatureRequest.status == query.status.value)
    if query.category:
        conditions.append(FeatureRequest.category == query.category.value)

    stmt = (
        select(FeatureRequest)
        .where(*conditions)
        .order_by(*SORT_ORDER[query.sort], FeatureRequest.id)
        .limit(query.limit)
        .offset(query.offset)
    )
    result = await session.execute(stmt)
    rows = result.scalars().all()

    total = await session.execute(
        select(func.count()).select_from(FeatureRequest).where(*conditions)
    )
    return RequestList(
        requests=[RequestRead.model_validate(r) for r in rows],
        total=total.scalar_one(),
        limit=query.limit,
        offset=query.offset,
    )


async def create_request(
    session: AsyncSession, slug: str, req: RequestCreate
) -> FeatureRequest:
    board = await get_board_by_slug(session, slug)
    await reserve_request_slot(session, board.id)

    request = FeatureRequest(
        board_id=board.id,
        title=req.title,
        description=req.description,
        category=req.category.value,
        status=RequestStatus.OPEN.value,
        votes_count=0,
    )
    session.add(request)
    await session.flush()

    log.info("request.created", request_id=str(request.id), board_id=str(board.id))
    return request


async def update_request_status(
    session: AsyncSession,
    request_id: uuid.UUID,
    status: RequestStatus,
    actor: User,
) -> FeatureRequest:
    request = await require_request_ownership(session, request_id, actor.id)
    old_status = request.status
    request.status = status.value
    session.add(request)
    await session.flush()
    await session.refresh(request)

    log.info(
        "request.status_changed",
        request_id=str(request_id),
        from_status=old_status,
        to_status=status.value,
    )
    return request


async def delete_request(session: AsyncSession, request_id: uuid.UUID, actor: User) -> None:
    """Delete a request; its votes and comments go with it (FK cascade)."""
    request = await require_request_ownership(session, request_id, actor.id)
    await session.delete(request)
    await session.flush()
    log.info("request.deleted", request_id=str(request_id))
