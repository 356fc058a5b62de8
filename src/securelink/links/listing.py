"""Directory enumeration and link generation for listings."""

import errno
import stat
from pathlib import Path

import structlog

from securelink.errors import FilesystemError
from securelink.links.paths import PathMapper, display_name
from securelink.links.schemas import DirectoryListing, EntryKind, ListingEntry
from securelink.links.signer import LinkSigner

logger = structlog.get_logger()


def classify(path: Path) -> EntryKind:
    """Classify a path without following symlinks.

    Args:
        path: Path to inspect.

    Returns:
        DIRECTORY or FILE for real directories and regular files, OTHER for
        symlinks, sockets, FIFOs and devices.

    Raises:
        OSError: If the path cannot be inspected.
    """
    mode = path.lstat().st_mode
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def is_hidden(name: str) -> bool:
    """Check if a name is a dotfile."""
    return name.startswith(".")


def _error_code(e: OSError) -> str | None:
    return errno.errorcode.get(e.errno) if e.errno is not None else None


def _enumerate(directory: Path) -> list[Path]:
    try:
        kind = classify(directory)
    except FileNotFoundError as e:
        raise FilesystemError(
            f"Directory not found: {directory}", str(directory), "ENOENT"
        ) from e
    except OSError as e:
        raise FilesystemError(
            f"Failed to inspect directory: {e}", str(directory), _error_code(e)
        ) from e

    if kind is not EntryKind.DIRECTORY:
        raise FilesystemError(
            f"Not a directory: {directory}", str(directory), "ENOTDIR"
        )

    try:
        return list(directory.iterdir())
    except PermissionError as e:
        raise FilesystemError(
            f"Permission denied: {directory}", str(directory), "EACCES"
        ) from e
    except OSError as e:
        raise FilesystemError(
            f"Failed to list directory: {e}", str(directory), _error_code(e)
        ) from e


def list_directory(
    directory: Path,
    hostname: str,
    mapper: PathMapper,
    signer: LinkSigner,
    hide_dotfiles: bool = True,
) -> DirectoryListing:
    """List the immediate children of a directory with outbound links.

    Entries are ordered directories first, then by name.

    Args:
        directory: Absolute directory path under the base directory.
        hostname: Public hostname for signed links.
        mapper: Path mapper for listing URLs.
        signer: Link signer for file downloads.
        hide_dotfiles: Skip names starting with a dot.

    Returns:
        Listing with one entry per directory or regular file.

    Raises:
        FilesystemError: If the directory is missing or cannot be enumerated.
        ClockError: If signing cannot read the time source.
    """
    entries: list[ListingEntry] = []

    for child in _enumerate(directory):
        if hide_dotfiles and is_hidden(child.name):
            continue

        try:
            kind = classify(child)
        except OSError:
            # Entry vanished between enumeration and inspection.
            logger.debug("listing_entry_skipped", name=child.name)
            continue

        match kind:
            case EntryKind.DIRECTORY:
                entries.append(
                    ListingEntry(
                        name=display_name(child.name),
                        url=mapper.to_listing_url(child),
                        is_directory=True,
                    )
                )
            case EntryKind.FILE:
                link = signer.sign(child, hostname)
                entries.append(
                    ListingEntry(
                        name=display_name(child.name),
                        url=link.url,
                        is_directory=False,
                        expires_at=link.expires_at,
                    )
                )
            case EntryKind.OTHER:
                continue

    entries.sort(key=lambda entry: (not entry.is_directory, entry.name))

    parent_url = None
    if directory != mapper.base_dir:
        parent_url = mapper.to_listing_url(directory.parent)

    return DirectoryListing(
        path=mapper.display_path(directory),
        parent_url=parent_url,
        entries=entries,
        validity_hours=signer.validity.total_seconds() / 3600,
    )
