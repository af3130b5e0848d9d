"""Data models.

This module exports the persisted table model and the immutable domain value
for directory users. Import models from here to ensure table registration.
"""

from .user import User, UserRecord

__all__ = [
    "User",
    "UserRecord",
]
