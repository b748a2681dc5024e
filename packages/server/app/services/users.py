"""
User service — board-owner accounts.
"""

from __future__ import annotations

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password, verify_password
from app.core.errors import AuthenticationRequired, Conflict
from app.models.user import User
from feedbackhub_shared.schemas.users import LoginRequest, SignupRequest

log = structlog.get_logger()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, req: SignupRequest) -> User:
    if await get_user_by_email(session, req.email):
        raise Conflict("User with this email already exists")

    user = User(
        email=req.email,
        name=req.name,
        password_hash=hash_password(req.password),
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("User with this email already exists")

    log.info("user.registered", user_id=str(user.id))
    return user


async def authenticate(session: AsyncSession, req: LoginRequest) -> User:
    user = await get_user_by_email(session, req.email)
    if not user or not verify_password(req.password, user.password_hash):
        log.warning("auth.login_failure", reason="bad_credentials")
        raise AuthenticationRequired("Invalid email or password")
    return user
