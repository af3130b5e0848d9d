"""User service for business logic operations.

This module provides the directory's business rules: names are validated
before any storage work, uniqueness is checked optimistically and enforced
by the store, and repository failures are translated into directory errors.
"""

import re
from uuid import UUID

from sqlmodel import Session

from ..config import Settings, get_settings
from ..exceptions import (
    DuplicateNameError,
    InfrastructureError,
    InvalidArgumentError,
    UserNotFoundError,
)
from ..logging_config import get_logger
from ..models.user import User
from ..repositories.user_repository import (
    UniqueViolationError,
    UserRepository,
    UserRepositoryError,
)
from ..schemas.user_schemas import CreateUserRequest, UserPage
from ..validation import is_blank, validate_create_request

logger = get_logger("user_service")

# Only the hyphenated 8-4-4-4-12 form identifies a user
CANONICAL_UUID = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class UserService:
    """Service for user business logic operations.

    One instance serves one request and owns no state beyond its session.
    """

    def __init__(self, session: Session, settings: Settings | None = None) -> None:
        """Initialize user service with database session.

        Args:
            session: SQLModel database session
            settings: Application settings, defaults to the process settings
        """
        self.session = session
        self.settings = settings or get_settings()
        self.repository = UserRepository(session)

    async def create_user(self, request: CreateUserRequest | None) -> User:
        """Register a new user under a unique name.

        The existence pre-check and the insert share one transaction. A writer
        that loses a race past the pre-check is rejected by the store's unique
        index and reported exactly like a pre-check hit.

        Args:
            request: Creation request carrying the desired name

        Returns:
            Created user

        Raises:
            InvalidArgumentError: If the request or name is invalid
            DuplicateNameError: If the name is already taken
            InfrastructureError: If the store fails
        """
        if request is None:
            raise InvalidArgumentError("User creation request must not be null")

        violations = validate_create_request(request)
        if violations:
            raise InvalidArgumentError(violations=violations)

        name = request.name
        logger.info("Creating user", extra={"user_name": name})

        try:
            with self.repository.transaction():
                if await self.repository.exists_by_name(name):
                    logger.info(
                        "Name rejected by existence check", extra={"user_name": name}
                    )
                    raise DuplicateNameError(name)
                user = await self.repository.insert(name)
        except UniqueViolationError as e:
            logger.info(
                "Name rejected by unique constraint", extra={"user_name": name}
            )
            raise DuplicateNameError(name) from e
        except UserRepositoryError as e:
            raise InfrastructureError(original_error=e.original_error or e) from e

        logger.info(
            "User created", extra={"user_id": str(user.id), "user_name": user.name}
        )
        return user

    async def get_user_by_id(self, user_id: UUID | str | None) -> User:
        """Get user by ID.

        Args:
            user_id: User ID as a UUID or its string form

        Returns:
            The matching user

        Raises:
            InvalidArgumentError: If the id is missing or not a UUID
            UserNotFoundError: If no user has this id
            InfrastructureError: If the store fails
        """
        if user_id is None:
            raise InvalidArgumentError(
                "User ID must not be null", violations={"id": "User ID is required"}
            )
        if not isinstance(user_id, UUID):
            if not isinstance(user_id, str) or not CANONICAL_UUID.fullmatch(user_id):
                raise InvalidArgumentError(
                    f"Invalid user ID format: {user_id}",
                    violations={"id": "User ID must be a valid UUID"},
                )
            user_id = UUID(user_id)

        try:
            user = await self.repository.find_by_id(user_id)
        except UserRepositoryError as e:
            raise InfrastructureError(original_error=e.original_error or e) from e

        if user is None:
            raise UserNotFoundError("ID", user_id)
        return user

    async def get_user_by_name(self, name: str | None) -> User:
        """Get user by name, ignoring case.

        Raises:
            InvalidArgumentError: If the name is missing or blank
            UserNotFoundError: If no user has this name
            InfrastructureError: If the store fails
        """
        self._require_name(name)

        try:
            user = await self.repository.find_by_name(name)
        except UserRepositoryError as e:
            raise InfrastructureError(original_error=e.original_error or e) from e

        if user is None:
            raise UserNotFoundError("name", name)
        return user

    async def is_name_available(self, name: str | None) -> bool:
        """Tell whether no user holds this name yet.

        Availability is advisory: a concurrent writer can still take the name
        before a subsequent ``create_user``.
        """
        self._require_name(name)

        try:
            return not await self.repository.exists_by_name(name)
        except UserRepositoryError as e:
            raise InfrastructureError(original_error=e.original_error or e) from e

    async def list_users(self, offset: int = 0, limit: int | None = None) -> UserPage:
        """List users, newest first.

        Args:
            offset: Number of users to skip
            limit: Page size, defaults to the configured page size

        Returns:
            UserPage with the users and the overall total

        Raises:
            InvalidArgumentError: If offset or limit is out of range
            InfrastructureError: If the store fails
        """
        if limit is None:
            limit = self.settings.default_page_size

        violations: dict[str, str] = {}
        if offset < 0:
            violations["offset"] = "Offset must be greater than or equal to 0"
        if not 1 <= limit <= self.settings.max_page_size:
            violations["limit"] = (
                f"Limit must be between 1 and {self.settings.max_page_size}"
            )
        if violations:
            raise InvalidArgumentError(violations=violations)

        try:
            users = await self.repository.find_all(offset=offset, limit=limit)
            total = await self.repository.count()
        except UserRepositoryError as e:
            raise InfrastructureError(original_error=e.original_error or e) from e

        return UserPage(users=users, total=total, offset=offset, limit=limit)

    @staticmethod
    def _require_name(name: str | None) -> None:
        if is_blank(name):
            raise InvalidArgumentError(
                "User name must not be blank",
                violations={"name": "Name must not be blank"},
            )
