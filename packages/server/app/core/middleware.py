"""
Security middleware: CSRF protection and security headers.
"""

from __future__ import annotations

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.auth import CSRF_COOKIE, SESSION_COOKIE
from app.core.errors import CSRFValidationFailed

CSRF_HEADER = "X-CSRF-Token"

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Billing events are server-to-server and authenticated by a shared secret.
CSRF_EXEMPT_PATHS = frozenset({"/api/v1/billing/events"})

# Swagger UI loads its assets from jsdelivr; everything else is same-origin JSON.
_CSP = "; ".join(
    [
        "default-src 'self'",
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
        "img-src 'self' data: https://fastapi.tiangolo.com",
        "frame-ancestors 'none'",
    ]
)

SECURITY_HEADERS = {
    "Content-Security-Policy": _CSP,
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


def csrf_check_required(request: Request) -> bool:
    """Only unsafe, cookie-authenticated browser requests can be forged."""
    if request.method in SAFE_METHODS or request.url.path in CSRF_EXEMPT_PATHS:
        return False
    return SESSION_COOKIE in request.cookies


def csrf_tokens_match(request: Request) -> bool:
    cookie_token = request.cookies.get(CSRF_COOKIE) or ""
    header_token = request.headers.get(CSRF_HEADER) or ""
    if not cookie_token or not header_token:
        return False
    return secrets.compare_digest(cookie_token, header_token)


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie CSRF protection: the ``fh_csrf`` cookie set at login
    must be echoed in the ``X-CSRF-Token`` header. Anonymous visitors carry no
    session cookie and pass straight through.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if csrf_check_required(request) and not csrf_tokens_match(request):
            error = CSRFValidationFailed()
            return JSONResponse(status_code=error.status_code, content={"error": error.to_dict()})
        return await call_next(request)
