"""Traversal-safe mapping between public URL paths and filesystem paths.

Filesystem names are handled as the bytes the OS stores: a name that is not
valid UTF-8 arrives as surrogate-escaped text (``os.fsdecode``) and is
percent-encoded byte for byte, which is also what the proxy decodes ``$uri``
back into.
"""
import os
import re
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import quote_from_bytes, unquote_to_bytes

from securelink.errors import MalformedPathError, PathTraversalError

# Characters encodeURIComponent leaves untouched besides the unreserved set.
SEGMENT_SAFE_CHARS = "!~*'()"

INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

SEPARATORS: tuple[str, ...] = tuple(sep for sep in ("/", os.sep, os.altsep) if sep)

# Bytes left as-is when normalising a raw request path; everything else is escaped.
RAW_PATH_SAFE = "/%!$&'()*+,;=:@~"


def decode_segment(segment: str) -> str:
    """Strictly percent-decode a single URL path segment into a filesystem name.

    Args:
        segment: Encoded path segment.

    Returns:
        The raw name, surrogate-escaped where its bytes are not UTF-8.

    Raises:
        MalformedPathError: If an escape is truncated or not hexadecimal.
    """
    if INVALID_ESCAPE.search(segment):
        raise MalformedPathError("Invalid percent-encoding in path segment", segment)
    return os.fsdecode(unquote_to_bytes(segment))


def encode_segment(name: str) -> str:
    """Percent-encode the bytes of a single filesystem name for a URL path."""
    return quote_from_bytes(os.fsencode(name), safe=SEGMENT_SAFE_CHARS)


def display_name(name: str) -> str:
    """Printable form of a filesystem name; undecodable bytes become U+FFFD."""
    return os.fsencode(name).decode("utf-8", errors="replace")


def split_request_path(raw: str) -> list[str]:
    """Split a still-encoded request path into its segments.

    Args:
        raw: Encoded path, with or without leading and trailing slashes.

    Returns:
        Encoded segments, empty for the root.
    """
    return [segment for segment in raw.split("/") if segment]


def request_segments(raw_path: bytes, base_path: str) -> list[str]:
    """Extract the encoded segments below a route prefix from a raw request path.

    The prefix must appear literally in the raw path; an encoded slash that
    only matched the route after decoding does not count as a separator.

    Args:
        raw_path: Undecoded request path as received by the server.
        base_path: Route prefix ending with a slash.

    Returns:
        Encoded segments following the prefix.

    Raises:
        PathTraversalError: If the raw path does not start with the prefix.
    """
    path = quote_from_bytes(raw_path.split(b"?", 1)[0], safe=RAW_PATH_SAFE)
    prefix = quote_from_bytes(base_path.encode("utf-8"), safe=RAW_PATH_SAFE)
    if path == prefix.rstrip("/"):
        return []
    if not path.startswith(prefix):
        raise PathTraversalError("Request path is outside the route prefix", path)
    return split_request_path(path[len(prefix):])


class PathMapper:
    """Converts between listing URLs, download URIs and filesystem paths.

    All filesystem paths produced or accepted lie under ``base_dir``.

    Attributes:
        base_dir: Absolute, resolved root of all served content.
        listing_base_path: Public URL prefix of directory listings.
        download_base_path: Public URL prefix of signed downloads.
    """

    def __init__(
        self,
        base_dir: Path,
        listing_base_path: str = "/downloads/",
        download_base_path: str = "/download/",
    ) -> None:
        """Initialize path mapper.

        Args:
            base_dir: Root directory; resolved once here.
            listing_base_path: Prefix for listing URLs, ending with a slash.
            download_base_path: Prefix for download URIs, ending with a slash.
        """
        self.base_dir = base_dir.resolve()
        self.listing_base_path = listing_base_path
        self.download_base_path = download_base_path

    def to_filesystem_path(self, segments: Sequence[str]) -> Path:
        """Resolve encoded request segments to a path under the base directory.

        Each segment is decoded on its own, so an encoded separator stays
        part of one name and is rejected rather than splitting the path.

        Args:
            segments: Percent-encoded URL path segments, possibly empty.

        Returns:
            Absolute path under the base directory.

        Raises:
            MalformedPathError: If any segment has invalid percent-encoding.
            PathTraversalError: If the path escapes the base directory.
        """
        parts: list[str] = []
        for segment in segments:
            name = decode_segment(segment)

            if "\0" in name:
                raise PathTraversalError("Path contains null byte", segment)
            if any(sep in name for sep in SEPARATORS):
                raise PathTraversalError("Path segment contains a separator", segment)

            if name in ("", "."):
                continue
            if name == "..":
                if not parts:
                    raise PathTraversalError(
                        "Path resolves outside base directory", "/".join(segments)
                    )
                parts.pop()
                continue
            parts.append(name)

        candidate = self.base_dir.joinpath(*parts)

        # Symlinked directories must not lead out of the tree either.
        if not candidate.resolve().is_relative_to(self.base_dir):
            raise PathTraversalError(
                "Path resolves outside base directory", "/".join(segments)
            )

        return candidate

    def to_public_segments(self, path: Path) -> list[str]:
        """Get the raw names of a path relative to the base directory.

        Args:
            path: Absolute path under the base directory.

        Returns:
            Decoded names from the base directory down to ``path``.

        Raises:
            PathTraversalError: If the path is not under the base directory.
        """
        try:
            relative = path.relative_to(self.base_dir)
        except ValueError as e:
            raise PathTraversalError(
                f"Path is outside base directory: {self.base_dir}", str(path)
            ) from e
        return [part for part in relative.parts if part not in ("", ".")]

    def _encoded_relative(self, path: Path) -> str:
        return "/".join(encode_segment(name) for name in self.to_public_segments(path))

    def to_listing_url(self, path: Path, is_directory: bool = True) -> str:
        """Build the public listing URL for a path.

        Args:
            path: Absolute path under the base directory.
            is_directory: Append a trailing slash when True.

        Returns:
            URL path starting with the listing base path.
        """
        relative = self._encoded_relative(path)
        if not relative:
            return self.listing_base_path
        suffix = "/" if is_directory else ""
        return f"{self.listing_base_path}{relative}{suffix}"

    def to_download_uri(self, path: Path) -> str:
        """Build the canonical download URI for a file.

        The decoded form of this URI is what the proxy sees as ``$uri`` and
        what goes into the signing input.

        Args:
            path: Absolute path of a file under the base directory.

        Returns:
            Encoded URI starting with the download base path.
        """
        return f"{self.download_base_path}{self._encoded_relative(path)}"

    def display_path(self, path: Path) -> str:
        """Human-readable path of a directory relative to the base, e.g. ``/a/b``."""
        return "/" + "/".join(
            display_name(name) for name in self.to_public_segments(path)
        )
