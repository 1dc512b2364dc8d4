# src/verser/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .communities import router as communities_router
from .conversations import router as conversations_router
from .realtime import router as realtime_router
from .users import router as users_router

__all__ = [
    "communities_router",
    "conversations_router",
    "realtime_router",
    "users_router",
]
