"""Error taxonomy for allocation and reassignment."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

# Storage failures propagate unmodified from SQLAlchemy.
StorageError = SQLAlchemyError


class InvigilationError(Exception):
    """Base class for engine errors surfaced to callers."""


class ValidationError(InvigilationError):
    """Bad or missing input (date, target id, configuration)."""


class NotFoundError(InvigilationError):
    """Referenced allocation or faculty does not exist."""


class ConflictError(InvigilationError):
    """Target faculty already holds an active allocation in the same date and slot."""


__all__ = [
    "InvigilationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
]
