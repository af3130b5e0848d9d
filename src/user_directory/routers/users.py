"""Users router.

This module exposes user registration and lookup. Handlers only shape
requests and responses; every failure is raised as a ``DirectoryError`` and
rendered by the global exception handlers.
"""

from fastapi import APIRouter, Body, Query, Request, Response, status

from ..dependencies import UserServiceDep
from ..exceptions import InvalidArgumentError
from ..schemas.user_schemas import (
    CreateUserRequest,
    ErrorResponse,
    NameAvailabilityResponse,
    UserListResponse,
    UserResponse,
)
from ..validation import validate_create_request

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
    responses={
        400: {"description": "Invalid argument", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
    },
)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    responses={409: {"description": "Name already taken", "model": ErrorResponse}},
)
async def create_user(
    request: Request,
    response: Response,
    user_service: UserServiceDep,
    payload: CreateUserRequest | None = Body(default=None),
) -> UserResponse:
    """Register a new user.

    Every structural problem with the name is reported in ``violations``.
    The ``Location`` header of a successful response points at the new user.

    Example:
        POST /api/users {"name": "alice123"}

        Response (201):
        {
            "id": "3f0c9a4e-8d1b-4d0c-9a57-2f4b1c7e9d21",
            "name": "alice123",
            "createdAt": "2024-01-01T12:00:00Z"
        }
    """
    violations = validate_create_request(payload)
    if violations:
        raise InvalidArgumentError(violations=violations)

    user = await user_service.create_user(payload)
    response.headers["Location"] = str(
        request.url_for("get_user_by_id", user_id=str(user.id))
    )
    return UserResponse.from_user(user)


@router.get(
    "",
    response_model=UserResponse,
    summary="Get user by name",
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def get_user_by_name(
    user_service: UserServiceDep,
    name: str | None = Query(default=None, description="Name to look up, case-insensitive"),
) -> UserResponse:
    """Look up a user by name; a missing or blank name is a 400, not a 404."""
    user = await user_service.get_user_by_name(name)
    return UserResponse.from_user(user)


@router.get(
    "/availability",
    response_model=NameAvailabilityResponse,
    summary="Check name availability",
)
async def check_name_availability(
    user_service: UserServiceDep,
    name: str | None = Query(default=None, description="Name to check"),
) -> NameAvailabilityResponse:
    available = await user_service.is_name_available(name)
    return NameAvailabilityResponse(name=name, available=available)


@router.get(
    "/all",
    response_model=UserListResponse,
    summary="List users",
    description="Paginated list of users, newest first",
)
async def list_users(
    user_service: UserServiceDep,
    offset: int = Query(default=0, description="Number of users to skip"),
    limit: int | None = Query(default=None, description="Maximum number of users to return"),
) -> UserListResponse:
    page = await user_service.list_users(offset=offset, limit=limit)
    return UserListResponse.from_page(page)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user by ID",
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def get_user_by_id(user_id: str, user_service: UserServiceDep) -> UserResponse:
    """Look up a user by ID.

    The id is parsed by the service so that a malformed value is reported
    as InvalidArgument with the directory's own message.
    """
    user = await user_service.get_user_by_id(user_id)
    return UserResponse.from_user(user)
