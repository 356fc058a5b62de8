"""Pydantic schemas for listing responses."""

from enum import Enum

from pydantic import BaseModel, Field


class EntryKind(str, Enum):
    """Closed classification of directory entries."""

    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"


class ListingEntry(BaseModel):
    """Single linked entry of a directory listing."""

    name: str = Field(description="Display name of the entry")
    url: str = Field(description="Listing URL for directories, signed URL for files")
    is_directory: bool
    expires_at: int | None = Field(
        default=None, description="Link expiry in Unix seconds, files only"
    )


class DirectoryListing(BaseModel):
    """Immediate children of one directory."""

    path: str = Field(description="Directory path relative to the base, e.g. /a/b")
    parent_url: str | None = Field(
        default=None, description="Listing URL of the parent, None at the root"
    )
    entries: list[ListingEntry]
    validity_hours: float = Field(description="Lifetime of the signed links")


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
