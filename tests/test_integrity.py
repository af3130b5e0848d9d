"""Unit tests for integrity error classification."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from user_directory.models.user import UserRecord
from user_directory.repositories.integrity import is_unique_violation


class _DriverError(Exception):
    """Stand-in for a DBAPI exception with driver-specific attributes."""

    def __init__(self, message: str = "", *args, **attrs):
        super().__init__(*(args or (message,)))
        for key, value in attrs.items():
            setattr(self, key, value)


def _integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO users ...", {}, orig)


class TestIsUniqueViolation:
    """Test cases for is_unique_violation."""

    def test_postgres_unique_sqlstate(self):
        orig = _DriverError("duplicate", pgcode="23505")

        assert is_unique_violation(_integrity_error(orig)) is True

    def test_postgres_other_sqlstate(self):
        # not-null violation whose message happens to mention "unique"
        orig = _DriverError("null value violates unique-looking rule", pgcode="23502")

        assert is_unique_violation(_integrity_error(orig)) is False

    def test_psycopg3_sqlstate_attribute(self):
        orig = _DriverError("duplicate", sqlstate="23505")

        assert is_unique_violation(_integrity_error(orig)) is True

    def test_mysql_duplicate_entry(self):
        orig = _DriverError("", 1062, "Duplicate entry 'alice' for key 'uq_users_name_lower'")

        assert is_unique_violation(_integrity_error(orig)) is True

    def test_mysql_foreign_key_failure(self):
        orig = _DriverError("", 1452, "Cannot add or update a child row")

        assert is_unique_violation(_integrity_error(orig)) is False

    @pytest.mark.parametrize(
        "error_name", ["SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"]
    )
    def test_sqlite_unique_error_names(self, error_name: str):
        orig = _DriverError("constraint failed", sqlite_errorname=error_name)

        assert is_unique_violation(_integrity_error(orig)) is True

    def test_sqlite_not_null(self):
        orig = _DriverError(
            "NOT NULL constraint failed: users.name",
            sqlite_errorname="SQLITE_CONSTRAINT_NOTNULL",
        )

        assert is_unique_violation(_integrity_error(orig)) is False

    @pytest.mark.parametrize(
        "message",
        [
            "UNIQUE constraint failed: users.name",
            "duplicate key value violates unique constraint",
            "Duplicate entry 'x' for key",
        ],
    )
    def test_message_fallback(self, message: str):
        assert is_unique_violation(_integrity_error(_DriverError(message))) is True

    def test_unrecognized_error(self):
        orig = _DriverError("CHECK constraint failed: name_length")

        assert is_unique_violation(_integrity_error(orig)) is False

    def test_real_sqlite_violation(self, test_session: Session):
        now = datetime.now(timezone.utc)
        test_session.add(UserRecord(id=str(uuid4()), name="alice", created_at=now))
        test_session.flush()
        test_session.add(UserRecord(id=str(uuid4()), name="ALICE", created_at=now))

        with pytest.raises(IntegrityError) as exc_info:
            test_session.flush()
        test_session.rollback()

        assert is_unique_violation(exc_info.value) is True
