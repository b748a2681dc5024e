"""Comment service: append and list. Reassignment happens only in consolidation."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.comment import Comment
from app.services.requests import get_request_or_404
from feedbackhub_shared.schemas.comments import CommentCreate

log = structlog.get_logger()


async def add_comment(
    session: AsyncSession, request_id: uuid.UUID, comment_in: CommentCreate
) -> Comment:
    await get_request_or_404(session, request_id)
    comment = Comment(
        request_id=request_id,
        author_name=comment_in.author_name,
        author_email=comment_in.author_email.lower(),
        content=comment_in.content,
    )
    session.add(comment)
    await session.flush()
    log.info("comment.created", comment_id=str(comment.id), request_id=str(request_id))
    return comment


async def list_comments(session: AsyncSession, request_id: uuid.UUID) -> list[Comment]:
    """Newest first."""
    await get_request_or_404(session, request_id)
    result = await session.execute(
        select(Comment)
        .where(Comment.request_id == request_id)
        .order_by(Comment.created_at.desc(), Comment.id)
    )
    return list(result.scalars().all())
