"""
Main API router that aggregates all route modules.
"""

from fastapi import APIRouter

from .routes import chats


def get_api_router() -> APIRouter:
    """Get the API router."""
    api_router = APIRouter()
    api_router.include_router(chats.router)
    return api_router
