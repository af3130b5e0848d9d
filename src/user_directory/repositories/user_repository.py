"""User repository for database operations.

This module provides the data access layer for directory users. Every
statement is built with the SQLAlchemy expression language, so values always
travel as bound parameters. Backend failures are narrowed to two signals:
``UniqueViolationError`` for a name conflict and ``UserRepositoryError`` for
everything else.
"""

import asyncio
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator
from uuid import UUID, uuid4

from pydantic import BaseModel, Field
from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..logging_config import get_logger, log_database_operation
from ..models.user import User, UserRecord
from .integrity import is_unique_violation

logger = get_logger("repositories.user")

TABLE_NAME = "users"


class UserRepositoryError(Exception):
    """Opaque infrastructure failure raised by the repository.

    The backend exception is kept in ``original_error`` for logging; callers
    should not surface it.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class UniqueViolationError(UserRepositoryError):
    """Raised when the backend's uniqueness constraint rejected a write."""
    pass


class ProbeResult(BaseModel):
    """Outcome of a store connectivity probe."""

    healthy: bool = Field(description="Whether the round-trip succeeded in time")
    duration_ms: float = Field(description="Time spent on the probe")
    reason: str | None = Field(default=None, description="Machine-readable failure reason")
    error_type: str | None = Field(default=None, description="Exception class of the failure")
    detail: str | None = Field(default=None, description="Failure detail for operators")


class _CreationClock:
    """UTC clock that never goes backwards within the process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last: datetime | None = None

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now(timezone.utc)
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
            return current


_clock = _CreationClock()


def _translate(error: SQLAlchemyError, message: str) -> UserRepositoryError:
    if isinstance(error, IntegrityError) and is_unique_violation(error):
        return UniqueViolationError(message, original_error=error)
    return UserRepositoryError(f"{message}: {type(error).__name__}", original_error=error)


class UserRepository:
    """Repository for user database operations.

    The repository never commits on its own; ``transaction()`` marks the unit
    of work so callers decide where the boundary lies.
    """

    def __init__(self, session: Session) -> None:
        """Initialize user repository with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed operations as one unit of work.

        Commits when the block finishes, rolls back when it raises. A failure
        raised by the commit itself is classified like an insert failure.

        Raises:
            UniqueViolationError: If the commit hit the uniqueness constraint
            UserRepositoryError: If the commit failed for another reason
        """
        try:
            yield
        except Exception:
            self.session.rollback()
            raise

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise _translate(e, "Failed to commit transaction") from e

    async def insert(self, name: str) -> User:
        """Insert a new user row.

        The id and creation timestamp are generated here. The row is flushed
        so a constraint violation surfaces before the transaction commits.

        Args:
            name: Name of the new user

        Returns:
            Created user

        Raises:
            UniqueViolationError: If a user with the same name already exists
            UserRepositoryError: If database operation fails
        """
        record = UserRecord(id=str(uuid4()), name=name, created_at=_clock.now())
        started = time.perf_counter()
        try:
            self.session.add(record)
            self.session.flush()
        except SQLAlchemyError as e:
            error = _translate(e, f"Failed to insert user {name!r}")
            log_database_operation(
                "INSERT",
                TABLE_NAME,
                success=False,
                duration=time.perf_counter() - started,
                error=type(e).__name__,
                unique_violation=isinstance(error, UniqueViolationError),
            )
            raise error from e

        log_database_operation("INSERT", TABLE_NAME, duration=time.perf_counter() - started)
        logger.info("Inserted user", extra={"user_id": record.id, "user_name": name})
        return User.from_record(record)

    async def find_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID.

        Args:
            user_id: User ID to search for

        Returns:
            User if found, None otherwise

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = select(UserRecord).where(UserRecord.id == str(user_id))
            record = self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get user by ID {user_id}", original_error=e
            ) from e
        return User.from_record(record) if record else None

    async def find_by_name(self, name: str) -> User | None:
        """Get user by name, ignoring case.

        Args:
            name: User name to search for

        Returns:
            User if found, None otherwise

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = select(UserRecord).where(
                func.lower(UserRecord.name) == name.lower()
            )
            record = self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get user by name {name!r}", original_error=e
            ) from e
        return User.from_record(record) if record else None

    async def exists_by_name(self, name: str) -> bool:
        """Check if a user with this name exists, ignoring case.

        Args:
            name: User name to check

        Returns:
            True if user exists, False otherwise

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = (
                select(UserRecord.id)
                .where(func.lower(UserRecord.name) == name.lower())
                .limit(1)
            )
            return self.session.exec(statement).first() is not None
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to check user existence for name {name!r}", original_error=e
            ) from e

    async def find_all(self, offset: int = 0, limit: int = 20) -> list[User]:
        """Get users, newest first.

        Args:
            offset: Number of users to skip
            limit: Maximum number of users to return

        Returns:
            List of users

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = (
                select(UserRecord)
                .order_by(UserRecord.created_at.desc(), UserRecord.id)
                .offset(offset)
                .limit(limit)
            )
            records = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise UserRepositoryError("Failed to list users", original_error=e) from e
        return [User.from_record(record) for record in records]

    async def count(self) -> int:
        """Get total count of users.

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = select(func.count(UserRecord.id))
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise UserRepositoryError("Failed to count users", original_error=e) from e

    def _ping(self) -> None:
        # Fresh connection so the probe never shares state with the request session.
        with self.session.get_bind().connect() as connection:
            connection.execute(text("SELECT 1"))

    async def connectivity_probe(self, timeout_seconds: float) -> ProbeResult:
        """Issue a trivial round-trip to the store within a time budget.

        Args:
            timeout_seconds: Time budget; an overrun counts as unhealthy

        Returns:
            ProbeResult describing the outcome
        """
        started = time.perf_counter()
        try:
            await asyncio.wait_for(asyncio.to_thread(self._ping), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.error(
                "Store connectivity probe timed out",
                extra={"timeout_seconds": timeout_seconds},
            )
            return ProbeResult(
                healthy=False,
                duration_ms=round(duration_ms, 2),
                reason="timeout",
                error_type="TimeoutError",
                detail=f"No response within {timeout_seconds}s",
            )
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.error(
                f"Store connectivity probe failed: {type(e).__name__}",
                exc_info=True,
            )
            return ProbeResult(
                healthy=False,
                duration_ms=round(duration_ms, 2),
                reason="connection_failed",
                error_type=type(e).__name__,
                detail=str(e),
            )

        duration_ms = (time.perf_counter() - started) * 1000
        return ProbeResult(healthy=True, duration_ms=round(duration_ms, 2))
