"""
Authentication for FeedbackHub.

Supports:
- Email/Password accounts for board owners (bcrypt)
- JWT session cookie with Redis revocation list
- Session dependencies: optional session email (voting) and required
  user (board administration)

Voters and commenters never need an account; see ``app.core.identity``.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import AuthenticationRequired
from app.core.redis import get_redis
from app.models.user import User

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "fh_session"
CSRF_COOKIE = "fh_csrf"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    email: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: Optional[int] = None) -> None:
    """Add a JWT ID to the revocation list in Redis."""
    redis = await get_redis()
    ttl = ttl_seconds or settings.jwt_expire_minutes * 60
    await redis.setex(f"jwt:revoked:{jti}", ttl, "1")


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    redis = await get_redis()
    return await redis.exists(f"jwt:revoked:{jti}") > 0


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Session dependencies
# ---------------------------------------------------------------------------

async def read_session(request: Request) -> Optional[dict]:
    """Return the verified session payload, or None for anonymous callers.

    Expired, tampered and revoked tokens are all treated as no session.
    """
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        return None

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        return None
    if not payload.get("sub") or not payload.get("email"):
        return None
    return payload


async def get_session_email(request: Request) -> Optional[str]:
    """Session email of the caller, if any."""
    payload = await read_session(request)
    return payload["email"] if payload else None


async def require_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User:
    """Board-owner endpoints: resolve the session to a User or reject."""
    payload = await read_session(request)
    if payload is None:
        raise AuthenticationRequired()

    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise AuthenticationRequired("Invalid session")

    user = await session.get(User, user_id)
    if user is None:
        log.warning("auth.session_user_missing", user_id=str(user_id))
        raise AuthenticationRequired("User not found")
    return user
