"""
Request consolidation: merge a duplicate request into a canonical one.

All steps run in the caller's single transaction; any failure rolls back the
whole merge, so a half-merged state (votes moved, source still present, or a
stale counter) is never committed.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import InvalidMerge, NotFound
from app.models.base import utcnow
from app.models.comment import Comment
from app.models.request import FeatureRequest
from app.models.vote import Vote
from app.services.ownership import require_ownership
from app.services.votes import count_votes, lock_requests

log = structlog.get_logger()


async def merge_requests(
    session: AsyncSession,
    source_id: uuid.UUID,
    target_id: uuid.UUID,
    acting_user_id: uuid.UUID,
) -> FeatureRequest:
    """Fold ``source_id`` into ``target_id`` and return the updated target.

    Preconditions, first failure wins: distinct ids, both exist, same board,
    caller owns the board.
    """
    if source_id == target_id:
        raise InvalidMerge("Cannot merge a request into itself")

    # Locks both rows; a concurrent merge of either one waits here and then
    # finds its source or target gone.
    locked = await lock_requests(session, [source_id, target_id])
    source = locked.get(source_id)
    target = locked.get(target_id)
    if source is None:
        raise NotFound("Source request not found")
    if target is None:
        raise NotFound("Target request not found")

    if source.board_id != target.board_id:
        raise InvalidMerge("Cannot merge requests from different boards")

    await require_ownership(session, source.board_id, acting_user_id)

    # Identities that voted on both collapse to their existing target vote.
    target_voters = select(Vote.identity).where(Vote.request_id == target_id)
    dropped = await session.execute(
        delete(Vote)
        .where(Vote.request_id == source_id, Vote.identity.in_(target_voters))
        .execution_options(synchronize_session=False)
    )
    moved_votes = await session.execute(
        update(Vote)
        .where(Vote.request_id == source_id)
        .values(request_id=target_id)
        .execution_options(synchronize_session=False)
    )
    moved_comments = await session.execute(
        update(Comment)
        .where(Comment.request_id == source_id)
        .values(request_id=target_id)
        .execution_options(synchronize_session=False)
    )

    live_votes = await count_votes(session, target_id)
    await session.execute(
        update(FeatureRequest)
        .where(FeatureRequest.id == target_id)
        .values(votes_count=live_votes, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )

    await session.delete(source)
    await session.flush()
    await session.refresh(target)

    log.info(
        "request.merged",
        source_id=str(source_id),
        target_id=str(target_id),
        votes_moved=moved_votes.rowcount,
        duplicate_votes_dropped=dropped.rowcount,
        comments_moved=moved_comments.rowcount,
        votes=target.votes_count,
    )
    return target
