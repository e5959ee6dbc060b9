# src/confessional/__init__.py
"""Ephemeral store for end-to-end encrypted confessions."""

__version__ = "1.0.0"
