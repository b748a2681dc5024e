"""
Board service — creation under the tier ceiling, lookup, and deletion.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Conflict, NotFound
from app.models.board import Board
from app.models.user import User
from app.services.ownership import require_ownership
from app.services.tiers import reserve_board_slot
from feedbackhub_shared.schemas.boards import BoardCreate

log = structlog.get_logger()


async def list_user_boards(session: AsyncSession, user_id: uuid.UUID) -> list[Board]:
    result = await session.execute(
        select(Board).where(Board.user_id == user_id).order_by(Board.created_at)
    )
    return list(result.scalars().all())


async def get_board_by_slug(session: AsyncSession, slug: str) -> Board:
    """Get a board by slug; raises NotFound."""
    result = await session.execute(select(Board).where(Board.slug == slug))
    board = result.scalar_one_or_none()
    if not board:
        raise NotFound("Board not found")
    return board


async def create_board(session: AsyncSession, req: BoardCreate, owner: User) -> Board:
    """Create a board for ``owner`` if their tier allows another one."""
    await reserve_board_slot(session, owner.id)

    existing = await session.execute(select(Board.id).where(Board.slug == req.slug))
    if existing.scalar_one_or_none():
        raise Conflict("Slug already taken", details={"field": "slug"})

    board = Board(
        slug=req.slug,
        name=req.name,
        description=req.description,
        user_id=owner.id,
    )
    session.add(board)
    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("Slug already taken", details={"field": "slug"})

    log.info("board.created", board_id=str(board.id), slug=board.slug, owner=str(owner.id))
    return board


async def delete_board(session: AsyncSession, slug: str, owner: User) -> None:
    """Delete a board and, by cascade, its requests, votes and comments."""
    board = await get_board_by_slug(session, slug)
    await require_ownership(session, board.id, owner.id)
    await session.delete(board)
    await session.flush()
    log.info("board.deleted", board_id=str(board.id), slug=slug)
