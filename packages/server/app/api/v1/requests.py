"""
Request endpoints: owner triage (status, delete, merge), voting, comments.

Mutation pipeline: identity -> admission limiter -> ownership guard (admin
actions) -> vote ledger / consolidator, all inside the request's single
database transaction.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_session_email, require_user
from app.core.database import get_session, with_read_retry
from app.core.identity import client_address, resolve_identity
from app.core.rate_limit import FixedWindowRateLimiter, admit_comment, admit_vote, get_rate_limiter
from app.models.user import User
from app.services import comments as comment_service
from app.services import requests as request_service
from app.services.consolidation import merge_requests
from app.services.votes import toggle_vote
from feedbackhub_shared.schemas.comments import CommentCreate, CommentRead
from feedbackhub_shared.schemas.requests import (
    MergeRequest,
    RequestRead,
    RequestStatusUpdate,
    VoteCreate,
    VoteResult,
)

router = APIRouter()


@router.get("/{request_id}", response_model=RequestRead)
async def get_request(request_id: uuid.UUID):
    return await with_read_retry(lambda s: request_service.get_request_or_404(s, request_id))


@router.patch("/{request_id}", response_model=RequestRead)
async def update_request_status(
    request_id: uuid.UUID,
    body: RequestStatusUpdate,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Change a request's status (board owner only)."""
    return await request_service.update_request_status(session, request_id, body.status, user)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: uuid.UUID,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    await request_service.delete_request(session, request_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{request_id}/vote", response_model=VoteResult)
async def vote(
    request_id: uuid.UUID,
    request: Request,
    response: Response,
    body: Optional[VoteCreate] = None,
    session_email: Optional[str] = Depends(get_session_email),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    session: AsyncSession = Depends(get_session),
):
    """Toggle the caller's vote. 201 when a vote was added, 200 when removed."""
    address = client_address(request)
    identity = resolve_identity(session_email, address, body.email if body else None)
    admit_vote(limiter, identity)

    result = await toggle_vote(session, request_id, identity, ip_address=address)
    response.status_code = status.HTTP_201_CREATED if result.voted else status.HTTP_200_OK
    return result


@router.post("/{request_id}/merge", response_model=RequestRead)
async def merge(
    request_id: uuid.UUID,
    body: MergeRequest,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Merge this (duplicate) request into ``target_request_id``; returns the target."""
    return await merge_requests(session, request_id, body.target_request_id, user.id)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.get("/{request_id}/comments", response_model=List[CommentRead])
async def list_comments(request_id: uuid.UUID):
    """Comments, newest first."""
    return await with_read_retry(lambda s: comment_service.list_comments(s, request_id))


@router.post("/{request_id}/comments", response_model=CommentRead, status_code=201)
async def create_comment(
    request_id: uuid.UUID,
    body: CommentCreate,
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    session: AsyncSession = Depends(get_session),
):
    admit_comment(limiter, body.author_email)
    return await comment_service.add_comment(session, request_id, body)
