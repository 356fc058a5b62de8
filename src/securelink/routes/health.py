"""Health check endpoints for liveness and readiness checks."""
from pathlib import Path
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness check.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness check.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


def _check_directory(path: Path) -> ReadinessCheck:
    """Verify directory exists and is listable.

    Args:
        path: Absolute path to directory.

    Returns:
        Check result with status and optional error message.
    """
    name = "base_dir"
    try:
        if path.is_dir():
            next(iter(path.iterdir()), None)
            return ReadinessCheck(name=name, status="ok")
        return ReadinessCheck(
            name=name,
            status="failed",
            message="Directory not found",
        )
    except PermissionError as e:
        return ReadinessCheck(
            name=name,
            status="failed",
            message=f"Permission denied: {e.strerror}",
        )
    except OSError as e:
        return ReadinessCheck(
            name=name,
            status="failed",
            message=e.strerror or str(e),
        )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness check endpoint.

    Returns immediate success if the process is running.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
def readiness(request: Request) -> JSONResponse:
    """Readiness check endpoint.

    Returns 200 if the base directory is listable, 503 otherwise.

    Args:
        request: Incoming request carrying application state.

    Returns:
        Readiness status with individual check results.
    """
    checks = [_check_directory(request.app.state.mapper.base_dir)]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
