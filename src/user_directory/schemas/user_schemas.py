"""User schemas for API requests and responses.

Request schemas are intentionally permissive: the name is accepted as any
optional string so that the structural rules in ``validation`` can report
every violation together instead of pydantic stopping at the first one.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ..models.user import User


class CreateUserRequest(BaseModel):
    """Schema for creating a new user."""

    name: str | None = Field(
        default=None,
        description="Unique name, 3-50 characters of letters, digits, '-' and '_'",
        examples=["alice123"],
    )


class UserResponse(BaseModel):
    """Schema for user information in API responses."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="User ID", examples=["3f0c9a4e-8d1b-4d0c-9a57-2f4b1c7e9d21"])
    name: str = Field(description="User name", examples=["alice123"])
    created_at: datetime = Field(
        alias="createdAt", description="Timestamp when user was created"
    )

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=str(user.id), name=user.name, created_at=user.created_at)


class UserPage(BaseModel):
    """A page of users, newest first."""

    model_config = ConfigDict(frozen=True)

    users: list[User]
    total: int = Field(ge=0)
    offset: int = Field(ge=0)
    limit: int = Field(ge=1)


class UserListResponse(BaseModel):
    """Schema for paginated user list responses."""

    users: list[UserResponse] = Field(description="Users on this page")
    total: int = Field(description="Total number of users")
    offset: int = Field(description="Number of users skipped")
    limit: int = Field(description="Maximum number of users per page")

    @classmethod
    def from_page(cls, page: UserPage) -> "UserListResponse":
        return cls(
            users=[UserResponse.from_user(user) for user in page.users],
            total=page.total,
            offset=page.offset,
            limit=page.limit,
        )


class NameAvailabilityResponse(BaseModel):
    """Whether a name can still be registered."""

    name: str = Field(examples=["alice123"])
    available: bool


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""

    error: str = Field(description="Error kind label", examples=["DuplicateName"])
    message: str = Field(examples=["Name already exists: alice123"])
    timestamp: str = Field(description="ISO-8601 UTC timestamp")
    violations: dict[str, str] | None = Field(
        default=None, description="Field violations for InvalidArgument errors"
    )
