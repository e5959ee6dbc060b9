# src/confessional/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .confessions import router as confessions_router
from .research import router as research_router
from .support import router as support_router

__all__ = [
    "confessions_router",
    "research_router",
    "support_router",
]
