"""Health check router for service monitoring.

This module provides the basic, liveness and readiness endpoints. Readiness
depends on the store answering a trivial query within the configured probe
timeout.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .. import __version__
from ..database import get_database_info
from ..dependencies import AppSettings, UserRepositoryDep
from ..logging_config import get_logger

logger = get_logger("health")

SERVICE_NAME = "user-directory"

router = APIRouter(
    prefix="/api/health",
    tags=["health"],
    responses={
        503: {"description": "Service unavailable"},
    },
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get(
    "",
    response_model=dict[str, Any],
    summary="Basic health check",
    description="Returns basic health status of the service",
)
async def health_check(settings: AppSettings) -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Dict[str, Any]: Health status information

    Example:
        {
            "status": "UP",
            "timestamp": "2024-01-01T12:00:00Z",
            "service": "user-directory",
            "version": "1.0.0",
            "environment": "development"
        }
    """
    return {
        "status": "UP",
        "timestamp": _now(),
        "service": SERVICE_NAME,
        "version": __version__,
        "environment": settings.environment,
    }


@router.get(
    "/live",
    response_model=dict[str, Any],
    summary="Liveness probe",
    description="Reports that the process is running; never touches the store",
)
async def liveness_probe() -> dict[str, Any]:
    return {"status": "UP", "timestamp": _now()}


@router.get(
    "/ready",
    response_model=dict[str, Any],
    summary="Readiness probe",
    description="Checks store connectivity within the configured timeout",
)
async def readiness_probe(
    repository: UserRepositoryDep, settings: AppSettings
) -> JSONResponse:
    """Readiness probe.

    Returns 200 when the store answered in time, 503 otherwise. A failed
    check carries the reason (``timeout`` or ``connection_failed``).

    Example:
        {
            "status": "DOWN",
            "timestamp": "2024-01-01T12:00:00Z",
            "checks": [
                {"name": "database", "status": "DOWN", "reason": "timeout", ...}
            ]
        }
    """
    result = await repository.connectivity_probe(settings.probe_timeout_seconds)

    check: dict[str, Any] = {
        "name": "database",
        "status": "UP" if result.healthy else "DOWN",
        "duration_ms": result.duration_ms,
    }
    if result.healthy:
        check["details"] = get_database_info()
    else:
        check["reason"] = result.reason
        check["error_type"] = result.error_type
        logger.warning(
            "Readiness check failed",
            extra={"reason": result.reason, "error_type": result.error_type},
        )

    body = {
        "status": check["status"],
        "timestamp": _now(),
        "checks": [check],
    }
    return JSONResponse(status_code=200 if result.healthy else 503, content=body)
