"""Service configuration loaded from environment variables."""
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    ValidationError,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from securelink.errors import ConfigurationError


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    Attributes:
        secret: Shared secret also configured in the proxy's secure_link_md5.
        base_dir: Root directory of all served content.
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        debug: Enable debug logging and API documentation.
        scheme: Scheme used in signed download URLs.
        public_host: Static hostname for signed URLs; empty uses the request host.
        listing_base_path: Public URL prefix of directory listings.
        download_base_path: Public URL prefix the proxy guards with secure_link.
        link_validity_hours: Lifetime of each signed link.
        hide_dotfiles: Omit entries whose name starts with a dot.
        forwarded_allow_ips: Peers trusted to send proxy headers.
        shutdown_timeout: Seconds to wait for graceful shutdown.
    """

    model_config = SettingsConfigDict(
        env_prefix="SECURELINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    secret: SecretStr = Field(
        validation_alias=AliasChoices("secret", "SECURELINK_SECRET", "SECRET"),
    )
    base_dir: Path

    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False
    shutdown_timeout: float = 30.0
    forwarded_allow_ips: str = "127.0.0.1"

    scheme: str = "https"
    public_host: str = ""
    listing_base_path: str = "/downloads/"
    download_base_path: str = "/download/"
    link_validity_hours: int = Field(default=24, gt=0)
    hide_dotfiles: bool = True

    @field_validator("secret")
    @classmethod
    def _require_secret(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("secret must not be empty")
        return value

    @field_validator("base_dir")
    @classmethod
    def _require_directory(cls, value: Path) -> Path:
        resolved = value.expanduser().resolve()
        if not resolved.is_dir():
            raise ValueError(f"base directory does not exist: {value}")
        return resolved

    @field_validator("listing_base_path", "download_base_path")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        stripped = value.strip("/")
        return f"/{stripped}/" if stripped else "/"

    @field_validator("scheme")
    @classmethod
    def _validate_scheme(cls, value: str) -> str:
        if value not in ("http", "https"):
            raise ValueError("scheme must be http or https")
        return value

    @computed_field
    @property
    def link_validity(self) -> timedelta:
        """Signed link lifetime as a timedelta.

        Returns:
            Validity window applied to every signed link.
        """
        return timedelta(hours=self.link_validity_hours)


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, failing fast on bad configuration.

    Args:
        **overrides: Explicit values taking precedence over the environment.

    Returns:
        Validated settings.

    Raises:
        ConfigurationError: If a required value is missing or invalid.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "settings"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {fields}") from e
