"""Exception taxonomy for path mapping, signing and listing."""


class SecureLinkError(Exception):
    """Base class for all service errors."""


class ConfigurationError(SecureLinkError):
    """Raised at startup when required configuration is missing or invalid."""


class PathTraversalError(SecureLinkError):
    """Raised when a requested path would resolve outside the base directory."""

    def __init__(self, message: str, path: str) -> None:
        """Initialize traversal error.

        Args:
            message: Error description.
            path: The offending path value.
        """
        super().__init__(message)
        self.path = path


class MalformedPathError(SecureLinkError):
    """Raised when a path segment carries invalid percent-encoding."""

    def __init__(self, message: str, segment: str) -> None:
        """Initialize malformed path error.

        Args:
            message: Error description.
            segment: The segment that failed to decode.
        """
        super().__init__(message)
        self.segment = segment


class FilesystemError(SecureLinkError):
    """Raised when a listing target is missing or cannot be enumerated."""

    def __init__(self, message: str, path: str, code: str | None = None) -> None:
        """Initialize filesystem error.

        Args:
            message: Error description.
            path: Path that caused the error.
            code: Optional error code (e.g., ENOENT).
        """
        super().__init__(message)
        self.path = path
        self.code = code


class ClockError(SecureLinkError):
    """Raised when the time source cannot provide a usable timestamp."""
