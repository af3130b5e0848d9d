"""Pydantic schemas for API validation and serialization."""

from .user_schemas import (
    CreateUserRequest,
    ErrorResponse,
    NameAvailabilityResponse,
    UserListResponse,
    UserPage,
    UserResponse,
)

__all__ = [
    "CreateUserRequest",
    "UserResponse",
    "UserPage",
    "UserListResponse",
    "NameAvailabilityResponse",
    "ErrorResponse",
]
