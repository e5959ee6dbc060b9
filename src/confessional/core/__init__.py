# src/confessional/core/__init__.py
"""Core configuration for the Confessional application."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
