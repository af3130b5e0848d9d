"""Classification of backend integrity errors.

SQLAlchemy wraps every driver's constraint failure in ``IntegrityError``; the
driver exception in ``exc.orig`` says which constraint fired. Only uniqueness
violations matter to the directory, everything else is an infrastructure
failure.
"""

import logging
from enum import Enum

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class SQLState(str, Enum):
    UNIQUE_VIOLATION = "23505"


MYSQL_DUPLICATE_ENTRY = 1062

SQLITE_UNIQUE_ERROR_NAMES = frozenset(
    {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
)

_UNIQUE_MESSAGE_MARKERS = (
    "unique constraint",
    "unique failed",
    "unique violation",
    "duplicate entry",
    "duplicate key",
)


def _sqlstate(orig) -> str | None:
    # psycopg2 exposes ``pgcode``, psycopg 3 exposes ``sqlstate``
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _mysql_errno(orig) -> int | None:
    args = getattr(orig, "args", None)
    if args and isinstance(args[0], int):
        return args[0]
    return None


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell whether an ``IntegrityError`` was caused by a unique key conflict.

    Driver-specific codes are checked first (PostgreSQL SQLSTATE, MySQL errno,
    SQLite extended error name); the message text is a fallback for drivers
    that expose none of them.

    Args:
        exc: Integrity error raised by SQLAlchemy

    Returns:
        True if a uniqueness constraint rejected the statement
    """
    orig = exc.orig

    sqlstate = _sqlstate(orig)
    if sqlstate:
        logger.debug("Integrity error diagnostic", extra={"sqlstate": sqlstate})
        return sqlstate == SQLState.UNIQUE_VIOLATION.value

    errno = _mysql_errno(orig)
    if errno is not None:
        logger.debug("Integrity error diagnostic", extra={"mysql_errno": errno})
        return errno == MYSQL_DUPLICATE_ENTRY

    error_name = getattr(orig, "sqlite_errorname", None)
    if error_name:
        logger.debug("Integrity error diagnostic", extra={"sqlite_errorname": error_name})
        return error_name in SQLITE_UNIQUE_ERROR_NAMES

    message = str(orig if orig is not None else exc).lower()
    if any(marker in message for marker in _UNIQUE_MESSAGE_MARKERS):
        return True

    logger.warning(
        "Unrecognized integrity error", extra={"message_snippet": message[:200]}
    )
    return False
