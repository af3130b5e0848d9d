"""Structured logging for the user directory.

Every request handled by ``LoggingMiddleware`` opens a request context (id,
client address, method, path) held in a ``ContextVar``. ``RequestContextFilter``
copies that context onto each record, so lines written by services and
repositories can be matched to the ``X-Request-ID`` the client received.
"""

import json
import logging
import logging.config
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import Settings

REQUEST_ID_HEADER = "X-Request-ID"
CONTEXT_FIELDS = ("request_id", "client_ip", "method", "path")

_request_context: ContextVar[dict[str, Any] | None] = ContextVar(
    "user_directory_request_context", default=None
)

# Attributes every LogRecord carries; anything else came in through ``extra``
# or the context filter.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class RequestContextFilter(logging.Filter):
    """Attach the active request context to log records.

    Values passed explicitly through ``extra`` win over the context; outside
    a request every field is ``None``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = _request_context.get() or {}
        for field in CONTEXT_FIELDS:
            if getattr(record, field, None) is None:
                setattr(record, field, context.get(field))
        return True


class JSONFormatter(logging.Formatter):
    """Render a record as one JSON line.

    Request context fields sit at the top level; other ``extra`` values are
    nested under ``extra``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and key not in CONTEXT_FIELDS
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(settings: Settings) -> None:
    """Configure the service's loggers.

    Debug mode switches to a human-readable format and lets SQL statements
    through; otherwise output is JSON lines on stdout.

    Args:
        settings: Application settings containing logging configuration
    """
    formatter = "plain" if settings.debug else "json"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": JSONFormatter},
                "plain": {
                    "format": "%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] %(message)s",
                },
            },
            "filters": {"request_context": {"()": RequestContextFilter}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter,
                    "filters": ["request_context"],
                    "stream": sys.stdout,
                }
            },
            "loggers": {
                "user_directory": {
                    "level": settings.log_level,
                    "handlers": ["console"],
                    "propagate": False,
                },
                "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
                "sqlalchemy.engine": {
                    "level": "INFO" if settings.debug else "WARNING",
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
            "root": {"level": "WARNING", "handlers": ["console"]},
        }
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Open a request context and log each request's outcome and duration.

    The request id is echoed back in ``X-Request-ID``.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.logger = get_logger("requests")

    async def dispatch(self, request: Request, call_next) -> Response:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()
        else:
            client_ip = request.client.host if request.client else None

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = _request_context.set(
            {
                "request_id": request_id,
                "client_ip": client_ip,
                "method": request.method,
                "path": request.url.path,
            }
        )
        started = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception:
                self.logger.exception(
                    "Request failed",
                    extra={"duration_ms": _elapsed_ms(started)},
                )
                raise

            duration_ms = _elapsed_ms(started)
            self.logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Process-Time"] = f"{duration_ms / 1000:.4f}"
            return response
        finally:
            _request_context.reset(token)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``user_directory`` namespace."""
    if not name.startswith("user_directory."):
        name = f"user_directory.{name}"
    return logging.getLogger(name)


def log_database_operation(
    operation: str,
    table: str,
    success: bool = True,
    duration: float | None = None,
    error: str | None = None,
    **context: Any,
) -> None:
    """Record one repository statement.

    Successful operations are logged at DEBUG, failures at ERROR.

    Args:
        operation: Statement kind (INSERT, SELECT, ...)
        table: Table the statement touched
        success: Whether the statement succeeded
        duration: Elapsed time in seconds
        error: Failure description, if any
        **context: Additional fields for the record
    """
    message = f"{operation} {table}" + ("" if success else f" failed: {error}")
    get_logger("database").log(
        logging.DEBUG if success else logging.ERROR,
        message,
        extra={
            "operation": operation,
            "table": table,
            "success": success,
            "duration_ms": round(duration * 1000, 2) if duration is not None else None,
            **({"error": error} if error else {}),
            **context,
        },
    )
