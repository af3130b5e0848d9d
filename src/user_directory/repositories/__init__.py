"""Data access layer.

This module provides the user repository and the classification of backend
integrity errors.
"""

from .integrity import is_unique_violation
from .user_repository import (
    ProbeResult,
    UniqueViolationError,
    UserRepository,
    UserRepositoryError,
)

__all__ = [
    "UserRepository",
    "UserRepositoryError",
    "UniqueViolationError",
    "ProbeResult",
    "is_unique_violation",
]
