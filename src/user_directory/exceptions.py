"""Error taxonomy and global exception handlers.

Every failure the directory can report belongs to one ``ErrorKind``. Domain
errors declare their kind as a class attribute and ``ERROR_CATALOG`` maps each
kind to exactly one status code, label and default message, so rendering an
error never depends on which layer raised it. The handlers registered by
``register_exception_handlers`` are the only place an error becomes a
response.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Closed set of externally reported failure categories."""

    INVALID_ARGUMENT = "InvalidArgument"
    DUPLICATE_NAME = "DuplicateName"
    NOT_FOUND = "NotFound"
    INFRASTRUCTURE_FAILURE = "InfrastructureFailure"
    UNRECOGNIZED = "Unrecognized"


@dataclass(frozen=True)
class ErrorSpec:
    status_code: int
    label: str
    default_message: str
    log_level: int
    # Framework statuses that may also be reported under this label
    framework_statuses: frozenset[int] = frozenset()

    def allows(self, status_code: int) -> bool:
        return status_code == self.status_code or status_code in self.framework_statuses


ERROR_CATALOG: dict[ErrorKind, ErrorSpec] = {
    ErrorKind.INVALID_ARGUMENT: ErrorSpec(
        status_code=status.HTTP_400_BAD_REQUEST,
        label=ErrorKind.INVALID_ARGUMENT.value,
        default_message="Request validation failed. Please check the provided data.",
        log_level=logging.INFO,
        framework_statuses=frozenset(
            {
                status.HTTP_405_METHOD_NOT_ALLOWED,
                status.HTTP_406_NOT_ACCEPTABLE,
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            }
        ),
    ),
    ErrorKind.DUPLICATE_NAME: ErrorSpec(
        status_code=status.HTTP_409_CONFLICT,
        label=ErrorKind.DUPLICATE_NAME.value,
        default_message="Name already exists",
        log_level=logging.INFO,
    ),
    ErrorKind.NOT_FOUND: ErrorSpec(
        status_code=status.HTTP_404_NOT_FOUND,
        label=ErrorKind.NOT_FOUND.value,
        default_message="Resource not found",
        log_level=logging.DEBUG,
    ),
    ErrorKind.INFRASTRUCTURE_FAILURE: ErrorSpec(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        label=ErrorKind.INFRASTRUCTURE_FAILURE.value,
        default_message="A storage error occurred. Please try again later.",
        log_level=logging.ERROR,
    ),
    ErrorKind.UNRECOGNIZED: ErrorSpec(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        label=ErrorKind.UNRECOGNIZED.value,
        default_message="An unexpected error occurred. Please try again later.",
        log_level=logging.ERROR,
    ),
}

# Kinds whose own message may reach the client; the others always use the
# catalog's generic text.
_CLIENT_VISIBLE_KINDS = frozenset(
    {ErrorKind.INVALID_ARGUMENT, ErrorKind.DUPLICATE_NAME, ErrorKind.NOT_FOUND}
)


class DirectoryError(Exception):
    """Base class for all errors the directory reports to clients."""

    kind: ErrorKind = ErrorKind.UNRECOGNIZED

    def __init__(self, message: str | None = None, original_error: Exception | None = None) -> None:
        self.message = message or ERROR_CATALOG[self.kind].default_message
        self.original_error = original_error
        super().__init__(self.message)


class InvalidArgumentError(DirectoryError):
    """Malformed, missing or out-of-range input.

    ``violations`` maps a field name to every problem found with it.
    """

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(
        self,
        message: str | None = None,
        violations: Mapping[str, str] | None = None,
    ) -> None:
        self.violations = dict(violations or {})
        super().__init__(message)


class DuplicateNameError(DirectoryError):
    """The requested name is already taken."""

    kind = ErrorKind.DUPLICATE_NAME

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Name already exists: {name}")


class UserNotFoundError(DirectoryError):
    """No user matches the lookup."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"User not found with {field}: {value}")


class InfrastructureError(DirectoryError):
    """The store failed or could not be reached."""

    kind = ErrorKind.INFRASTRUCTURE_FAILURE


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_error_body(
    kind: ErrorKind,
    message: str | None = None,
    violations: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Build the error envelope for a kind.

    Args:
        kind: Error kind being reported
        message: Client-facing message, ignored for server-side kinds
        violations: Field violations, only kept for InvalidArgument

    Returns:
        Envelope with ``error``, ``message``, ``timestamp`` and optional ``violations``
    """
    spec = ERROR_CATALOG[kind]
    if kind not in _CLIENT_VISIBLE_KINDS or not message:
        message = spec.default_message

    body: dict[str, Any] = {
        "error": spec.label,
        "message": message,
        "timestamp": _utc_timestamp(),
    }
    if kind is ErrorKind.INVALID_ARGUMENT and violations:
        body["violations"] = dict(violations)
    return body


def create_error_response(
    kind: ErrorKind,
    message: str | None = None,
    violations: Mapping[str, str] | None = None,
    status_code: int | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Create standardized error response.

    Args:
        kind: Error kind being reported
        message: Client-facing message
        violations: Field violations for InvalidArgument
        status_code: Override for framework errors that carry their own status
        headers: Extra response headers

    Returns:
        JSONResponse: Standardized error response
    """
    return JSONResponse(
        status_code=status_code or ERROR_CATALOG[kind].status_code,
        content=build_error_body(kind, message, violations),
        headers=dict(headers) if headers else None,
    )


def kind_for_status(status_code: int) -> ErrorKind:
    """Return the kind whose catalog entry covers a framework status code."""
    for kind, spec in ERROR_CATALOG.items():
        if kind in _CLIENT_VISIBLE_KINDS and spec.allows(status_code):
            return kind
    return ErrorKind.UNRECOGNIZED


def _request_fields(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "client_ip": request.client.host if request.client else None,
        "request_id": getattr(request.state, "request_id", None),
    }


def _join_messages(messages: list[str]) -> str:
    return "; ".join(messages)


def violations_from_validation_errors(errors: list[dict[str, Any]]) -> dict[str, str]:
    """Collapse FastAPI validation errors into a field -> message map.

    The location prefix (``body``, ``query``, ``path``) is dropped; errors
    without a named field are reported under ``body``.
    """
    collected: dict[str, list[str]] = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if isinstance(part, str)]
        if location and location[0] in {"body", "query", "path", "header", "cookie"}:
            location = location[1:]
        field = ".".join(location) or "body"
        collected.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return {field: _join_messages(messages) for field, messages in collected.items()}


# Global Exception Handlers


async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
    """Render any ``DirectoryError`` through the catalog entry of its kind.

    Args:
        request: FastAPI request object
        exc: Directory error instance

    Returns:
        JSONResponse: Error envelope
    """
    spec = ERROR_CATALOG[exc.kind]
    cause = exc.original_error or exc.__cause__
    logger.log(
        spec.log_level,
        f"{spec.label}: {exc.message}",
        exc_info=cause if spec.log_level >= logging.ERROR and cause else None,
        extra={
            "error_kind": spec.label,
            "status_code": spec.status_code,
            **_request_fields(request),
        },
    )
    return create_error_response(
        exc.kind,
        message=exc.message,
        violations=getattr(exc, "violations", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request parsing failures as InvalidArgument.

    Args:
        request: FastAPI request object
        exc: Validation error instance

    Returns:
        JSONResponse: Error envelope with a violation map
    """
    violations = violations_from_validation_errors(list(exc.errors()))
    logger.info(
        f"Request validation failed: {len(violations)} field(s)",
        extra={"violations": violations, **_request_fields(request)},
    )
    return create_error_response(ErrorKind.INVALID_ARGUMENT, violations=violations)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope.

    The framework's status code is kept when the catalog lists it for a kind;
    any other status is reported as Unrecognized with that kind's status.
    """
    kind = kind_for_status(exc.status_code)
    status_code = exc.status_code if kind is not ErrorKind.UNRECOGNIZED else None

    logger.info(
        f"HTTP Exception: {exc.status_code} - {exc.detail}",
        extra={"status_code": exc.status_code, **_request_fields(request)},
    )
    return create_error_response(
        kind,
        message=str(exc.detail),
        status_code=status_code,
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions as Unrecognized.

    The traceback goes to the log only; the client sees a generic message.
    """
    logger.error(
        f"Unexpected Exception: {type(exc).__name__}",
        exc_info=exc,
        extra={"exception_type": type(exc).__name__, **_request_fields(request)},
    )
    return create_error_response(ErrorKind.UNRECOGNIZED)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the error handlers on an application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(DirectoryError, directory_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    # Must be last: catches everything the handlers above do not
    app.add_exception_handler(Exception, generic_exception_handler)
