"""Path mapping and traversal safety tests."""

import os
from pathlib import Path

import pytest

from securelink.errors import MalformedPathError, PathTraversalError
from securelink.links import (
    PathMapper,
    decode_segment,
    display_name,
    encode_segment,
    request_segments,
    split_request_path,
)


def _roundtrip(mapper: PathMapper, path: Path) -> Path:
    segments = [encode_segment(name) for name in mapper.to_public_segments(path)]
    return mapper.to_filesystem_path(segments)


def test_empty_segments_map_to_base_dir(mapper: PathMapper) -> None:
    """The root request maps to the base directory itself."""
    assert mapper.to_filesystem_path([]) == mapper.base_dir


def test_dot_and_empty_segments_are_noops(mapper: PathMapper) -> None:
    """Dot and empty segments do not change the path."""
    assert mapper.to_filesystem_path([".", "sub", "", "%2E"]) == mapper.base_dir / "sub"


@pytest.mark.parametrize(
    "name",
    [
        "sub",
        "with space",
        "naïve.txt",
        "percent%41.txt",
        "q?uestion#hash",
        "semi;colon&amp=eq+plus",
        "日本語",
        os.fsdecode(b"bad\xff.txt"),
    ],
)
def test_path_roundtrip(mapper: PathMapper, name: str) -> None:
    """Encoding public segments and mapping back returns the same path."""
    path = mapper.base_dir / "sub" / name
    assert _roundtrip(mapper, path) == path


def test_roundtrip_of_base_dir(mapper: PathMapper) -> None:
    """The base directory round-trips through an empty segment list."""
    assert mapper.to_public_segments(mapper.base_dir) == []
    assert _roundtrip(mapper, mapper.base_dir) == mapper.base_dir


@pytest.mark.parametrize(
    "segments",
    [
        [".."],
        ["%2E%2E"],
        ["%2e%2e", "etc"],
        ["sub", "..", ".."],
        ["sub", "%2E%2E", "%2E%2E", "etc", "passwd"],
        ["..%2F..%2Fetc"],
        ["sub%2F..%2F.."],
        ["a%00b"],
    ],
)
def test_traversal_rejected(mapper: PathMapper, segments: list[str]) -> None:
    """Segments escaping the base directory are refused."""
    with pytest.raises(PathTraversalError):
        mapper.to_filesystem_path(segments)


def test_dotdot_within_tree_is_normalized(mapper: PathMapper) -> None:
    """A parent step that stays inside the tree is allowed."""
    assert mapper.to_filesystem_path(["sub", ".."]) == mapper.base_dir
    assert mapper.to_filesystem_path(["sub", "..", "sub"]) == mapper.base_dir / "sub"


def test_symlink_escape_rejected(mapper: PathMapper, tmp_path: Path) -> None:
    """A symlinked directory pointing outside the tree is refused."""
    outside = tmp_path / "outside"
    outside.mkdir()
    os.symlink(outside, mapper.base_dir / "escape")
    with pytest.raises(PathTraversalError):
        mapper.to_filesystem_path(["escape"])


@pytest.mark.parametrize("segment", ["%", "%4", "%zz", "abc%", "%G1"])
def test_malformed_encoding_rejected(mapper: PathMapper, segment: str) -> None:
    """Truncated or non-hex escapes fail the whole request."""
    with pytest.raises(MalformedPathError):
        mapper.to_filesystem_path(["sub", segment])


def test_decode_segment_is_per_segment() -> None:
    """An encoded slash decodes inside its segment."""
    assert decode_segment("a%2Fb") == "a/b"


def test_encode_segment_matches_encode_uri_component() -> None:
    """Reserved characters are escaped and mark characters kept."""
    assert encode_segment("a b/c?d#e") == "a%20b%2Fc%3Fd%23e"
    assert encode_segment("it's(1)!~*") == "it's(1)!~*"
    assert encode_segment("naïve") == "na%C3%AFve"


def test_listing_url_for_directory(mapper: PathMapper) -> None:
    """Directory listing URLs carry the prefix and a trailing slash."""
    path = mapper.base_dir / "sub" / "my dir"
    assert mapper.to_listing_url(path) == "/downloads/sub/my%20dir/"


def test_listing_url_for_root(mapper: PathMapper) -> None:
    """The root maps to the listing base path."""
    assert mapper.to_listing_url(mapper.base_dir) == "/downloads/"


def test_download_uri(mapper: PathMapper) -> None:
    """Download URIs carry the download prefix and no trailing slash."""
    path = mapper.base_dir / "a" / "b c.txt"
    assert mapper.to_download_uri(path) == "/download/a/b%20c.txt"


def test_custom_prefixes(base_dir: Path) -> None:
    """Configured base paths are used verbatim."""
    mapper = PathMapper(base_dir, "/browse/", "/get/")
    assert mapper.to_listing_url(base_dir / "x") == "/browse/x/"
    assert mapper.to_download_uri(base_dir / "x") == "/get/x"


def test_public_segments_outside_base_rejected(mapper: PathMapper) -> None:
    """Paths outside the base directory have no public form."""
    with pytest.raises(PathTraversalError):
        mapper.to_public_segments(Path("/etc/passwd"))


def test_display_path(mapper: PathMapper) -> None:
    """Display paths are relative to the base and start with a slash."""
    assert mapper.display_path(mapper.base_dir) == "/"
    assert mapper.display_path(mapper.base_dir / "sub" / "x y") == "/sub/x y"


def test_split_request_path() -> None:
    """Splitting drops empty segments."""
    assert split_request_path("/downloads/a%20b//c/") == ["downloads", "a%20b", "c"]
    assert split_request_path("/") == []


def test_request_segments_strip_prefix_and_query() -> None:
    """Raw paths lose the route prefix and any query string."""
    assert request_segments(b"/downloads/a%2Fb/c?x=1", "/downloads/") == ["a%2Fb", "c"]
    assert request_segments(b"/downloads/", "/downloads/") == []


def test_request_segments_escape_raw_bytes() -> None:
    """Unescaped UTF-8 bytes in the raw path are percent-encoded."""
    assert request_segments("/downloads/naïve".encode(), "/downloads/") == ["na%C3%AFve"]


def test_non_utf8_segment_decodes_to_filesystem_name(mapper: PathMapper) -> None:
    """Escaped bytes that are not UTF-8 map to the matching filesystem name."""
    path = mapper.to_filesystem_path(["dir%FE"])
    assert os.fsencode(path.name) == b"dir\xfe"
    assert mapper.to_listing_url(path) == "/downloads/dir%FE/"


def test_display_name_replaces_undecodable_bytes() -> None:
    """Display names are always printable UTF-8."""
    assert display_name(os.fsdecode(b"bad\xff.txt")) == "bad�.txt"
    assert display_name("naïve") == "naïve"


def test_request_segments_require_literal_prefix() -> None:
    """An encoded slash cannot stand in for the prefix separator."""
    with pytest.raises(PathTraversalError):
        request_segments(b"/downloads%2Fsub/", "/downloads/")


def test_request_segments_bare_prefix() -> None:
    """The prefix without its trailing slash is the root."""
    assert request_segments(b"/downloads", "/downloads/") == []
