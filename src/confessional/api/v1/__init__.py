# src/confessional/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import confessions_router, research_router, support_router

__all__ = [
    "confessions_router",
    "research_router",
    "support_router",
]
