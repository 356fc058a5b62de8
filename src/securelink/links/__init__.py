"""Path mapping, link signing and directory listing."""

from securelink.links.listing import classify, is_hidden, list_directory
from securelink.links.paths import (
    PathMapper,
    decode_segment,
    display_name,
    encode_segment,
    request_segments,
    split_request_path,
)
from securelink.links.schemas import (
    DirectoryListing,
    EntryKind,
    ErrorResponse,
    ListingEntry,
)
from securelink.links.signer import (
    LinkSigner,
    SignedLink,
    compute_token,
    signing_input,
)

__all__ = [
    "DirectoryListing",
    "EntryKind",
    "ErrorResponse",
    "LinkSigner",
    "ListingEntry",
    "PathMapper",
    "SignedLink",
    "classify",
    "compute_token",
    "decode_segment",
    "display_name",
    "encode_segment",
    "is_hidden",
    "list_directory",
    "request_segments",
    "signing_input",
    "split_request_path",
]
