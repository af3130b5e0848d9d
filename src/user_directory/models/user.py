"""User models.

This module defines the ``users`` table and the immutable ``User`` value that
the rest of the service passes around. Uniqueness of names is enforced by a
case-insensitive unique index on ``lower(name)``.
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import func
from sqlmodel import Column, DateTime, Field, Index, SQLModel, String


class UserRecord(SQLModel, table=True):
    """Row of the ``users`` table.

    Attributes:
        id: UUID primary key stored as its 36 character string form
        name: Unique (case-insensitive) human-readable name
        created_at: Timestamp when the row was inserted
    """

    __tablename__ = "users"

    id: str = Field(
        description="Server-generated UUID",
        sa_column=Column(String(36), primary_key=True),
    )
    name: str = Field(
        max_length=50,
        description="Unique user name",
        sa_column=Column(String(50), nullable=False),
    )
    created_at: datetime = Field(
        description="Timestamp when user was created",
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


# Functional indexes need the bound column, so they are attached after the class.
Index("uq_users_name_lower", func.lower(UserRecord.__table__.c.name), unique=True)
Index("idx_users_created_at", UserRecord.__table__.c.created_at)


class User(BaseModel):
    """Immutable directory user.

    Construction rejects a missing id or timestamp and a blank name, whatever
    path the values came from.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    created_at: datetime

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject empty or whitespace-only names."""
        if not v or v.isspace():
            raise ValueError("User name cannot be blank")
        return v

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        """Treat naive timestamps from the store as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @classmethod
    def from_record(cls, record: UserRecord) -> "User":
        return cls(id=UUID(record.id), name=record.name, created_at=record.created_at)
