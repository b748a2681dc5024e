"""
Exception handlers: render domain errors and storage failures as the stable
``{"error": {"code", "message", "status"}}`` envelope.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import Conflict, FeedbackError, RateLimited

log = structlog.get_logger()


def _error_response(status: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "status": status}},
        headers=headers,
    )


async def feedback_error_handler(request: Request, exc: FeedbackError) -> JSONResponse:
    log.info(
        "request.rejected",
        code=exc.code,
        status=exc.status_code,
        path=request.url.path,
        method=request.method,
    )
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.to_dict()},
        headers=headers,
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # A uniqueness/FK violation the services did not classify themselves.
    log.warning("storage.integrity_error", path=request.url.path, error=str(exc.orig))
    return await feedback_error_handler(request, Conflict("Conflicting update, please retry"))


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error(
        "storage.error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return _error_response(
        503,
        "storage_unavailable",
        "Temporary storage failure. Please retry the operation.",
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unhandled_error", path=request.url.path, method=request.method)
    return _error_response(500, "internal_error", "Internal server error")


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FeedbackError, feedback_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
