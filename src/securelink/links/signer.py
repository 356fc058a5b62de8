"""Signed download links compatible with the nginx secure_link module.

The proxy recomputes every token with::

    secure_link_md5 "$secure_link_expires$uri <secret>";

so the signing input, digest and encoding below must match it exactly.
"""
import base64
import hashlib
import hmac
import math
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from urllib.parse import unquote_to_bytes

import structlog
from pydantic import BaseModel, ConfigDict

from securelink.errors import ClockError, ConfigurationError
from securelink.links.paths import PathMapper

logger = structlog.get_logger()

DEFAULT_VALIDITY = timedelta(hours=24)


class SignedLink(BaseModel):
    """Externally visible download link.

    Attributes:
        url: Absolute URL including the h and e query parameters.
        expires_at: Expiry as integer seconds since the epoch.
        token: URL-safe, unpadded base64 MD5 digest.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    expires_at: int
    token: str


def signing_input(expires_at: int, canonical_uri: str, secret: str) -> bytes:
    """Build the exact bytes the proxy hashes.

    The proxy hashes the decoded ``$uri`` byte for byte, so the URI is
    percent-decoded to bytes and never reinterpreted as text.

    Args:
        expires_at: Expiry in seconds since the epoch.
        canonical_uri: Encoded download URI.
        secret: Shared secret.

    Returns:
        ``b"{expires_at}{decoded uri} {secret}"``.
    """
    return (
        str(expires_at).encode("ascii")
        + unquote_to_bytes(canonical_uri)
        + b" "
        + secret.encode("utf-8")
    )


def compute_token(data: bytes | str) -> str:
    """Hash a signing input into the token format the proxy expects.

    MD5 is fixed by the proxy's secure_link_md5 directive.

    Args:
        data: Signing input; text is hashed as UTF-8.

    Returns:
        Base64url digest with padding removed.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    digest = hashlib.md5(data, usedforsecurity=False).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class LinkSigner:
    """Mints signed download links for files under the base directory.

    Attributes:
        scheme: URL scheme of generated links.
        validity: Default lifetime of generated links.
    """

    def __init__(
        self,
        mapper: PathMapper,
        secret: str,
        scheme: str = "https",
        validity: timedelta = DEFAULT_VALIDITY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize link signer.

        Args:
            mapper: Path mapper producing canonical download URIs.
            secret: Shared secret configured in the proxy.
            scheme: URL scheme of generated links.
            validity: Default lifetime of generated links.
            clock: Source of the current Unix time in seconds.

        Raises:
            ConfigurationError: If the secret is empty.
        """
        if not secret:
            raise ConfigurationError("Signing secret must not be empty")
        self._mapper = mapper
        self._secret = secret
        self._clock = clock
        self.scheme = scheme
        self.validity = validity

    def __repr__(self) -> str:
        return f"LinkSigner(scheme={self.scheme!r}, validity={self.validity!r})"

    def _now(self) -> float:
        try:
            now = self._clock()
        except (OSError, OverflowError, ValueError) as e:
            raise ClockError(f"Time source unavailable: {e}") from e
        if now is None or not math.isfinite(now):
            raise ClockError(f"Time source returned an unusable value: {now!r}")
        return now

    def expires_at(self, validity: timedelta | None = None) -> int:
        """Compute the expiry of a link created now.

        Args:
            validity: Lifetime override, defaults to the signer's validity.

        Returns:
            Expiry in whole seconds, rounded up.

        Raises:
            ClockError: If the time source fails.
        """
        window = validity if validity is not None else self.validity
        return math.ceil(self._now() + window.total_seconds())

    def token_for(self, canonical_uri: str, expires_at: int) -> str:
        """Compute the token for a canonical URI and expiry."""
        return compute_token(signing_input(expires_at, canonical_uri, self._secret))

    def sign(
        self,
        path: Path,
        hostname: str,
        validity: timedelta | None = None,
    ) -> SignedLink:
        """Create a signed link for a file.

        Args:
            path: Absolute path of a file under the base directory.
            hostname: Public hostname the proxy is reached on.
            validity: Lifetime override.

        Returns:
            Freshly computed signed link.

        Raises:
            ValueError: If the hostname is empty.
            PathTraversalError: If the path is outside the base directory.
            ClockError: If the time source fails.
        """
        if not hostname:
            raise ValueError("hostname must not be empty")

        expires_at = self.expires_at(validity)
        canonical_uri = self._mapper.to_download_uri(path)
        token = self.token_for(canonical_uri, expires_at)

        logger.debug("link_signed", uri=canonical_uri, expires_at=expires_at)

        return SignedLink(
            url=f"{self.scheme}://{hostname}{canonical_uri}?h={token}&e={expires_at}",
            expires_at=expires_at,
            token=token,
        )

    def verify(
        self,
        canonical_uri: str,
        token: str,
        expires_at: int,
        now: float | None = None,
    ) -> bool:
        """Check a link the way the proxy does.

        Args:
            canonical_uri: Encoded download URI of the link.
            token: Value of the h parameter.
            expires_at: Value of the e parameter.
            now: Current time, read from the clock when None.

        Returns:
            True if the token matches and the link has not expired.
        """
        current = self._now() if now is None else now
        if current > expires_at:
            return False
        expected = self.token_for(canonical_uri, expires_at)
        return hmac.compare_digest(expected.encode("ascii"), token.encode("utf-8"))
