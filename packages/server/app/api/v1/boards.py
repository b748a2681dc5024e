"""
Board endpoints: owner board management, plus the public request list and
request submission for a board.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import require_user
from app.core.database import get_session, with_read_retry
from app.models.user import User
from app.services import boards as board_service
from app.services import requests as request_service
from feedbackhub_shared.schemas.boards import BoardCreate, BoardRead
from feedbackhub_shared.schemas.common import RequestCategory, RequestSort, RequestStatus
from feedbackhub_shared.schemas.requests import (
    RequestCreate,
    RequestList,
    RequestListQuery,
    RequestRead,
)

router = APIRouter()


@router.get("/", response_model=List[BoardRead])
async def list_boards(
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Boards owned by the caller."""
    return await board_service.list_user_boards(session, user.id)


@router.post("/", response_model=BoardRead, status_code=201)
async def create_board(
    board_in: BoardCreate,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a board (subject to the caller's plan limit)."""
    return await board_service.create_board(session, board_in, user)


@router.get("/{slug}", response_model=BoardRead)
async def get_board(slug: str):
    return await with_read_retry(lambda s: board_service.get_board_by_slug(s, slug))


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board(
    slug: str,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Delete a board with all of its requests (owner only)."""
    await board_service.delete_board(session, slug, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Board requests (public)
# ---------------------------------------------------------------------------


@router.get("/{slug}/requests", response_model=RequestList)
async def list_board_requests(
    slug: str,
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    category: Optional[RequestCategory] = None,
    sort: RequestSort = RequestSort.VOTES,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    query = RequestListQuery(
        status=status_filter, category=category, sort=sort, limit=limit, offset=offset
    )
    return await with_read_retry(lambda s: request_service.list_requests(s, slug, query))


@router.post("/{slug}/requests", response_model=RequestRead, status_code=201)
async def create_board_request(
    slug: str,
    request_in: RequestCreate,
    session: AsyncSession = Depends(get_session),
):
    """Submit a feature request to a board."""
    return await request_service.create_request(session, slug, request_in)
