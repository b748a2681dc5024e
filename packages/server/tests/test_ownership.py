"""
Tests for the ownership guard and the owner-only request mutations.
"""

from __future__ import annotations

import uuid

import pytest

from app.core.database import get_session_context
from app.core.errors import Forbidden, NotFound
from app.models.board import Board
from app.models.request import FeatureRequest
from app.services import boards as board_service
from app.services import requests as request_service
from app.services.ownership import NOT_OWNER_MESSAGE, require_ownership, require_request_ownership
from feedbackhub_shared.schemas.common import RequestStatus


class TestRequireOwnership:
    @pytest.mark.asyncio
    async def test_owner_passes(self, factory):
        owner = await factory.user()
        board = await factory.board(owner)
        async with get_session_context() as session:
            found = await require_ownership(session, board.id, owner.id)
        assert found.id == board.id

    @pytest.mark.asyncio
    async def test_other_user_forbidden(self, factory):
        owner = await factory.user()
        stranger = await factory.user()
        board = await factory.board(owner)
        async with get_session_context() as session:
            with pytest.raises(Forbidden, match=NOT_OWNER_MESSAGE):
                await require_ownership(session, board.id, stranger.id)

    @pytest.mark.asyncio
    async def test_missing_board_looks_the_same(self, factory):
        user = await factory.user()
        async with get_session_context() as session:
            with pytest.raises(Forbidden, match=NOT_OWNER_MESSAGE):
                await require_ownership(session, uuid.uuid4(), user.id)

    @pytest.mark.asyncio
    async def test_missing_request_is_not_found(self, factory):
        user = await factory.user()
        async with get_session_context() as session:
            with pytest.raises(NotFound):
                await require_request_ownership(session, uuid.uuid4(), user.id)


class TestOwnerMutations:
    @pytest.mark.asyncio
    async def test_owner_changes_status(self, factory):
        owner = await factory.user()
        board = await factory.board(owner)
        request = await factory.request(board)
        async with get_session_context() as session:
            updated = await request_service.update_request_status(
                session, request.id, RequestStatus.PLANNED, owner
            )
        assert updated.status == "planned"

    @pytest.mark.asyncio
    async def test_stranger_cannot_change_status(self, factory):
        owner = await factory.user()
        stranger = await factory.user()
        board = await factory.board(owner)
        request = await factory.request(board)
        with pytest.raises(Forbidden):
            async with get_session_context() as session:
                await request_service.update_request_status(
                    session, request.id, RequestStatus.REJECTED, stranger
                )
        reloaded = await factory.reload(FeatureRequest, request.id)
        assert reloaded.status == "open"

    @pytest.mark.asyncio
    async def test_delete_request_cascades(self, factory):
        owner = await factory.user()
        board = await factory.board(owner)
        request = await factory.request(board)
        await factory.votes(request, "a@example.com")
        await factory.comment(request)

        async with get_session_context() as session:
            await request_service.delete_request(session, request.id, owner)

        assert await factory.reload(FeatureRequest, request.id) is None

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete_board(self, factory):
        owner = await factory.user()
        stranger = await factory.user()
        board = await factory.board(owner)
        with pytest.raises(Forbidden):
            async with get_session_context() as session:
                await board_service.delete_board(session, board.slug, stranger)
        assert await factory.reload(Board, board.id) is not None

    @pytest.mark.asyncio
    async def test_owner_deletes_board(self, factory):
        owner = await factory.user()
        board = await factory.board(owner)
        request = await factory.request(board)
        async with get_session_context() as session:
            await board_service.delete_board(session, board.slug, owner)
        assert await factory.reload(Board, board.id) is None
        assert await factory.reload(FeatureRequest, request.id) is None
