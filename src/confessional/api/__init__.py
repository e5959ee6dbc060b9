# src/confessional/api/__init__.py
"""HTTP API for the Confessional application."""
