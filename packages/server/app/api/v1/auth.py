"""
Authentication endpoints.

- Email/Password signup & login for board owners
- JWT session management (logout with revocation)
"""

from __future__ import annotations

import jwt
import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    require_user,
    revoke_jwt,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.models.user import User
from app.services import users as user_service
from feedbackhub_shared.schemas.users import AuthResponse, LoginRequest, SignupRequest

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _start_session(response: Response, user: User) -> None:
    """Issue a session JWT and set the session + CSRF cookies."""
    token, _jti = create_jwt(user_id=user.id, email=user.email)
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    response.set_cookie(
        key=CSRF_COOKIE,
        value=generate_csrf_token(),
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=settings.jwt_expire_minutes * 60,
    )


@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Create a board-owner account and sign it in."""
    user = await user_service.create_user(session, body)
    _start_session(response, user)
    return AuthResponse(user_id=str(user.id), email=user.email, message="Signup successful")


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    user = await user_service.authenticate(session, body)
    _start_session(response, user)
    log.info("auth.login_success", user_id=str(user.id))
    return AuthResponse(user_id=str(user.id), email=user.email, message="Login successful")


@router.get("/me", response_model=AuthResponse)
async def me(user: User = Depends(require_user)):
    return AuthResponse(user_id=str(user.id), email=user.email, message="Authenticated")


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Invalidate the current session."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = {}  # Token already invalid, just clear cookies
        jti = payload.get("jti")
        if jti:
            await revoke_jwt(jti)

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"message": "Logged out"}
