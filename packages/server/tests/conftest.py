"""
Shared fixtures.

Tests run against a throwaway SQLite file (not :memory:) so that concurrent
sessions get separate connections and serialize on the database write lock,
the same way they serialize on row locks in PostgreSQL.
"""

from __future__ import annotations

import os
import tempfile

_fd, _DB_PATH = tempfile.mkstemp(prefix="feedbackhub-test-", suffix=".db")
os.close(_fd)

# Must be set before anything under app.* reads settings.
os.environ["FH_DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["FH_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["FH_BILLING_WEBHOOK_SECRET"] = "test-billing-secret"
os.environ["FH_DEBUG"] = "true"  # non-secure cookies over http://test
os.environ["FH_LOG_FORMAT"] = "text"
os.environ["FH_LOG_LEVEL"] = "warning"

import uuid
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

import app.core.rate_limit as rate_limit
from app.core.auth import CSRF_COOKIE, hash_password
from app.core.database import drop_db, engine, get_session_context, init_db
from app.main import app as fastapi_app
from app.models.board import Board
from app.models.comment import Comment
from app.models.request import FeatureRequest
from app.models.subscription import Subscription
from app.models.user import User
from app.services.votes import toggle_vote

TEST_PASSWORD = "Sup3rSecret"


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists(_DB_PATH):
        os.remove(_DB_PATH)


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture
async def db():
    """Fresh schema per test."""
    await init_db()
    yield
    await drop_db()
    # Pooled connections belong to this test's event loop.
    await engine.dispose()


@pytest.fixture(autouse=True)
def mock_redis():
    """Revocation list lives in Redis; nothing is revoked unless a test says so."""
    redis = AsyncMock()
    redis.exists = AsyncMock(return_value=0)
    redis.setex = AsyncMock()
    with patch("app.core.auth.get_redis", return_value=redis):
        yield redis


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    rate_limit._limiter = None
    yield
    rate_limit._limiter = None


@pytest.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def make_client(db):
    """Factory for extra independent clients (one cookie jar each)."""
    clients: list[AsyncClient] = []

    def _make() -> AsyncClient:
        ac = AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test")
        clients.append(ac)
        return ac

    yield _make
    for ac in clients:
        await ac.aclose()


async def _signup(client: AsyncClient, email: str, name: str = "Owner") -> dict:
    resp = await client.post(
        "/auth/signup", json={"email": email, "name": name, "password": TEST_PASSWORD}
    )
    assert resp.status_code == 201, resp.text
    return {"X-CSRF-Token": client.cookies[CSRF_COOKIE]}


@pytest.fixture
def signup(db):
    """Sign up through the API; the client keeps the session cookies.

    Returns headers carrying the CSRF token for unsafe requests.
    """
    return _signup


# ---------------------------------------------------------------------------
# Data factory (commits each object in its own transaction)
# ---------------------------------------------------------------------------

class Factory:
    async def user(self, email: Optional[str] = None, name: str = "Owner") -> User:
        email = email or f"owner-{uuid.uuid4().hex[:8]}@example.com"
        async with get_session_context() as session:
            user = User(email=email, name=name, password_hash=hash_password(TEST_PASSWORD))
            session.add(user)
        return user

    async def subscription(self, user: User, tier: str = "pro", status: str = "active") -> Subscription:
        async with get_session_context() as session:
            sub = Subscription(user_id=user.id, tier=tier, status=status, customer_id="cus_test")
            session.add(sub)
        return sub

    async def board(self, owner: User, slug: Optional[str] = None) -> Board:
        slug = slug or f"board-{uuid.uuid4().hex[:8]}"
        async with get_session_context() as session:
            board = Board(slug=slug, name=slug.title(), user_id=owner.id)
            session.add(board)
        return board

    async def request(self, board: Board, title: str = "Dark mode please", **kwargs) -> FeatureRequest:
        async with get_session_context() as session:
            request = FeatureRequest(board_id=board.id, title=title, **kwargs)
            session.add(request)
        return request

    async def votes(self, request: FeatureRequest, *identities: str) -> None:
        for identity in identities:
            async with get_session_context() as session:
                await toggle_vote(session, request.id, identity)

    async def comment(self, request: FeatureRequest, content: str = "+1 from me") -> Comment:
        async with get_session_context() as session:
            comment = Comment(
                request_id=request.id,
                author_name="Commenter",
                author_email="commenter@example.com",
                content=content,
            )
            session.add(comment)
        return comment

    async def reload(self, model, obj_id):
        async with get_session_context() as session:
            return await session.get(model, obj_id)


@pytest.fixture
def factory(db) -> Factory:
    return Factory()
