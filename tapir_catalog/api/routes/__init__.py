"""API routes."""

from .admin import router as admin_router
from .places import router as places_router
from .posts import router as posts_router

__all__ = [
    "posts_router",
    "places_router",
    "admin_router",
]
