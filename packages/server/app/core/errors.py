"""
Domain errors raised by the voting core and its collaborators.

The set is closed: every expected failure a caller can recover from is one of
the classes below. Each carries a stable machine-readable ``code``, the HTTP
status it maps to, a human message, and optional structured ``details``.
Storage-layer error text is never placed in any of these.
"""

from __future__ import annotations

from typing import Any, Optional


class FeedbackError(Exception):
    code: str = "error"
    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, *, details: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "status": self.status_code,
        }
        body.update(self.details)
        return body


class NotFound(FeedbackError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class Forbidden(FeedbackError):
    code = "forbidden"
    status_code = 403
    default_message = "Forbidden"


class AuthenticationRequired(Forbidden):
    """No (valid) session where one is required."""

    code = "authentication_required"
    status_code = 401
    default_message = "Authentication required"


class InvalidMerge(FeedbackError):
    code = "invalid_merge"
    status_code = 400
    default_message = "Invalid merge"


class RateLimited(FeedbackError):
    code = "rate_limited"
    status_code = 429
    default_message = "Rate limit exceeded"

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(
            message or f"Rate limit exceeded. Try again in {retry_after} seconds.",
            details={"retry_after": retry_after},
        )


class Conflict(FeedbackError):
    code = "conflict"
    status_code = 409
    default_message = "Conflict"


class CSRFValidationFailed(Forbidden):
    code = "csrf_validation_failed"
    default_message = "Invalid or missing CSRF token."
