"""Directory listing endpoints."""
from pathlib import Path
from urllib.parse import quote

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from securelink.errors import (
    ClockError,
    FilesystemError,
    MalformedPathError,
    PathTraversalError,
)
from securelink.links import (
    DirectoryListing,
    ErrorResponse,
    list_directory,
    request_segments,
)

logger = structlog.get_logger()

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

router = APIRouter(tags=["listing"])

api_router = APIRouter(prefix="/listing", tags=["listing"])

API_LISTING_PATH = "/api/v1/listing/"

FILESYSTEM_STATUS = {
    "ENOENT": 404,
    "ENOTDIR": 404,
    "EACCES": 403,
}

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _raw_path(request: Request) -> bytes:
    raw = request.scope.get("raw_path")
    if raw:
        return raw
    return quote(request.url.path).encode("ascii")


def _hostname(request: Request) -> tuple[str, str]:
    """Pick the hostname for signed links and report where it came from."""
    public_host: str = request.app.state.settings.public_host
    if public_host:
        return public_host, "public_host"
    hostname = request.url.hostname
    if not hostname:
        raise HTTPException(status_code=400, detail="Missing Host header")
    if ":" in hostname:
        # IPv6 literal; urlsplit strips the brackets.
        hostname = f"[{hostname}]"
    return hostname, "request"


def build_listing(request: Request, base_path: str) -> DirectoryListing:
    """Resolve the request path and list the target directory.

    The listed path and hostname source are left on ``request.state`` for
    the request logging middleware.

    Args:
        request: Incoming listing request.
        base_path: Route prefix preceding the directory segments.

    Returns:
        Listing of the requested directory.

    Raises:
        HTTPException: 400 for malformed paths, 404 for traversal attempts and
            missing directories, 403 for unreadable ones, 500 otherwise.
    """
    state = request.app.state
    hostname, host_source = _hostname(request)
    request.state.host_source = host_source

    try:
        segments = request_segments(_raw_path(request), base_path)
        directory = state.mapper.to_filesystem_path(segments)
        listing = list_directory(
            directory,
            hostname,
            state.mapper,
            state.signer,
            hide_dotfiles=state.settings.hide_dotfiles,
        )
    except MalformedPathError as e:
        logger.warning("listing_error", kind="malformed_path", segment=e.segment)
        raise HTTPException(status_code=400, detail="Malformed path") from e
    except PathTraversalError as e:
        logger.warning("listing_error", kind="path_traversal", path=e.path)
        raise HTTPException(status_code=404, detail="Not found") from e
    except FilesystemError as e:
        code = FILESYSTEM_STATUS.get(e.code or "", 500)
        logger.warning(
            "listing_error", kind="filesystem", code=e.code, error=str(e)
        )
        detail = "Not found" if code == 404 else "Directory not readable"
        raise HTTPException(status_code=code, detail=detail) from e
    except ClockError as e:
        logger.error("listing_error", kind="clock", error=str(e))
        raise HTTPException(status_code=500, detail="Time source unavailable") from e

    request.state.listing_path = listing.path
    request.state.entry_count = len(listing.entries)
    return listing


@router.get(
    "/{path:path}",
    response_class=HTMLResponse,
    responses=ERROR_RESPONSES,
    summary="Browse a directory",
    description="Returns an HTML fragment listing a directory with signed download links.",
)
def browse(request: Request, path: str) -> HTMLResponse:
    """Render a directory listing.

    Args:
        request: Incoming HTTP request.
        path: Directory path below the listing base path.

    Returns:
        HTML fragment with the current path, entries and link validity.
    """
    listing = build_listing(request, request.app.state.settings.listing_base_path)
    return templates.TemplateResponse(
        request,
        "listing.html",
        {"listing": listing},
    )


@api_router.get(
    "/{path:path}",
    response_model=DirectoryListing,
    responses=ERROR_RESPONSES,
    summary="List a directory",
    description="Returns a directory listing with signed download links as JSON.",
)
def get_listing(request: Request, path: str) -> DirectoryListing:
    """Get a directory listing as JSON.

    Args:
        request: Incoming HTTP request.
        path: Directory path below the API listing prefix.

    Returns:
        Directory listing.
    """
    return build_listing(request, API_LISTING_PATH)
