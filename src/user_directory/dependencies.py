"""FastAPI dependencies for settings, database access and services.

Each request gets its own session, and with it its own repository and
service instances.
"""

from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from .config import Settings, get_settings
from .database import get_session
from .repositories.user_repository import UserRepository
from .services.user_service import UserService


# Dependency for getting application settings
def get_app_settings() -> Settings:
    """Get application settings.

    Returns:
        Settings: Application configuration
    """
    return get_settings()


def get_user_repository(
    session: Annotated[Session, Depends(get_session)],
) -> UserRepository:
    return UserRepository(session)


# Dependency for getting user service
def get_user_service(
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UserService:
    """Get user service instance.

    Args:
        session: Database session
        settings: Application settings

    Returns:
        UserService: User service instance
    """
    return UserService(session, settings)


# Type aliases for common dependency patterns
AppSettings = Annotated[Settings, Depends(get_app_settings)]
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
