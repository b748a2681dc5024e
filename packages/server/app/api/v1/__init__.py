"""
API v1 Router

Public board pages read from /boards/{slug}; owner actions require a session.
"""

from fastapi import APIRouter
from . import billing, boards, requests

router = APIRouter()

router.include_router(boards.router, prefix="/boards", tags=["Boards"])
router.include_router(requests.router, prefix="/requests", tags=["Requests"])
router.include_router(billing.router, prefix="/billing", tags=["Billing"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/boards",
            "/boards/{slug}/requests",
            "/requests/{id}",
            "/requests/{id}/vote",
            "/requests/{id}/merge",
            "/requests/{id}/comments",
            "/billing/subscription",
        ],
    }
