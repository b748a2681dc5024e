"""
Ownership guard: the single authorization check used by every board-admin
mutation. Pure read; no side effects.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, NotFound
from app.models.board import Board
from app.models.request import FeatureRequest

# Same message whether the board is missing or owned by someone else.
NOT_OWNER_MESSAGE = "Only board owners can perform this action"


async def require_ownership(
    session: AsyncSession, board_id: uuid.UUID, user_id: uuid.UUID
) -> Board:
    """Return the board if ``user_id`` owns it; raise Forbidden otherwise."""
    board = await session.get(Board, board_id)
    if board is None or board.user_id != user_id:
        raise Forbidden(NOT_OWNER_MESSAGE)
    return board


async def require_request_ownership(
    session: AsyncSession, request_id: uuid.UUID, user_id: uuid.UUID
) -> FeatureRequest:
    """Resolve a request (404 if absent) and require ownership of its board."""
    request = await session.get(FeatureRequest, request_id)
    if request is None:
        raise NotFound("Request not found")
    await require_ownership(session, request.board_id, user_id)
    return request
