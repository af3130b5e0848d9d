"""Database connection and session management.

This module provides SQLModel engine setup, connection pooling, session management,
and database initialization utilities for the user directory service.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import FastAPI
from sqlalchemy.pool import QueuePool, StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import Settings, settings
# Import models to register them with SQLModel
from .models import UserRecord  # noqa: F401


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


def build_engine(config: Settings):
    """Create a SQLAlchemy engine for the configured store.

    Server databases get a pre-pinged QueuePool sized from settings. SQLite
    ignores pool sizing; in-memory SQLite shares one connection so every
    session sees the same tables.

    Args:
        config: Application settings

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    if config.is_sqlite:
        engine_kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(config.database_url):
            engine_kwargs["poolclass"] = StaticPool
        return create_engine(config.database_url, echo=config.debug, **engine_kwargs)

    return create_engine(
        config.database_url,
        echo=config.debug,  # Log SQL queries in debug mode
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_timeout=config.db_pool_timeout,
        pool_recycle=config.db_pool_recycle,
        pool_pre_ping=True,
        poolclass=QueuePool,
    )


# Create database engine with connection pooling
engine = build_engine(settings)


def get_session() -> Generator[Session, None, None]:
    """Dependency to get database session.

    This function provides a database session for dependency injection
    in FastAPI endpoints. The session is automatically closed after use.

    Yields:
        Session: SQLModel database session
    """
    with Session(engine) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def create_db_and_tables() -> None:
    """Create database tables based on SQLModel definitions.

    Note:
        This function is idempotent - it won't recreate existing tables.
    """
    SQLModel.metadata.create_all(engine)


def drop_db_and_tables() -> None:
    """Drop all database tables.

    Warning:
        This function will permanently delete all data in the database.
        Only use for testing or development purposes.
    """
    SQLModel.metadata.drop_all(engine)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """FastAPI lifespan context manager for database initialization.

    Args:
        app: FastAPI application instance

    Yields:
        None: Control to the application
    """
    # Startup: Create database tables
    create_db_and_tables()
    yield
    # Shutdown: Close database connections
    engine.dispose()


def get_database_info() -> dict[str, Any]:
    """Get database connection information for health checks.

    Returns:
        dict: Database connection information including URL and pool status
    """
    info: dict[str, Any] = {
        "url": engine.url.render_as_string(hide_password=True),
        "dialect": engine.dialect.name,
    }
    pool = engine.pool
    if isinstance(pool, QueuePool):
        info.update(
            {
                "pool_size": pool.size(),
                "checked_in": pool.checkedin(),
                "checked_out": pool.checkedout(),
                "overflow": pool.overflow(),
            }
        )
    return info
