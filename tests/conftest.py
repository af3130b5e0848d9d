"""Test configuration and fixtures.

This module provides test configuration, database setup and fixtures for
testing the user directory.
"""

import os

# Settings are read at import time; point them at a throwaway database first.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")

from datetime import datetime, timedelta, timezone
from typing import Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from user_directory.config import Settings
from user_directory.database import get_session
from user_directory.dependencies import get_app_settings
from user_directory.main import app
from user_directory.models.user import User, UserRecord
from user_directory.services.user_service import UserService

# Test database configuration
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings with test database configuration."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        debug=True,
        log_level="DEBUG",
        environment="testing",
        probe_timeout_seconds=1.0,
        default_page_size=20,
        max_page_size=100,
    )


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with in-memory SQLite."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_session(test_engine) -> Generator[Session, None, None]:
    """Create test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def user_service(test_session: Session, test_settings: Settings) -> UserService:
    return UserService(test_session, test_settings)


@pytest.fixture(scope="function")
def client(test_session: Session, test_settings: Settings) -> Generator[TestClient, None, None]:
    """Create test client with test database session."""

    def get_test_session():
        return test_session

    app.dependency_overrides[get_session] = get_test_session
    app.dependency_overrides[get_app_settings] = lambda: test_settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def lenient_client(client: TestClient) -> TestClient:
    """Test client that returns 500 responses instead of re-raising server errors."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture(scope="function")
def test_user(test_session: Session) -> User:
    """Create a persisted test user."""
    record = UserRecord(
        id=str(uuid4()),
        name="test_user",
        created_at=datetime.now(timezone.utc),
    )
    test_session.add(record)
    test_session.commit()
    test_session.refresh(record)
    return User.from_record(record)


@pytest.fixture(scope="function")
def many_users(test_session: Session) -> list[User]:
    """Persist five users with strictly increasing creation times."""
    base = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    records = [
        UserRecord(id=str(uuid4()), name=f"user_{i}", created_at=base + timedelta(minutes=i))
        for i in range(5)
    ]
    test_session.add_all(records)
    test_session.commit()
    return [User.from_record(record) for record in records]
