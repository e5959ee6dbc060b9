# src/confessional/services/errors.py
"""Exceptions raised by the confession services.

"Not found" is not an error: lookups return ``None`` and deletes return
``False`` for absent, expired or already-deleted confessions.
"""


class ConfessionError(RuntimeError):
    """Base exception for confession service failures."""


class InvalidInputError(ConfessionError, ValueError):
    """Raised when a required field is missing, empty or out of bounds.

    This is a caller error and is surfaced as a client error.
    """


class StorageFailureError(ConfessionError):
    """Raised when the backing store cannot complete an operation.

    Fatal to the single operation that raised it; other records are not
    affected.
    """
