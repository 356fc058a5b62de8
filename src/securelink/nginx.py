"""Render the nginx location blocks matching the service settings."""
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from securelink.config import Settings
from securelink.routes.listing import TEMPLATE_DIR

SECRET_PLACEHOLDER = "<value of SECURELINK_SECRET>"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=False,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def render_nginx_config(settings: Settings) -> str:
    """Render the proxy configuration for the current settings.

    The secret itself is never rendered; operators paste it in place of
    the placeholder.

    Args:
        settings: Service configuration.

    Returns:
        nginx configuration snippet for a ``server`` block.
    """
    template = _env.get_template("nginx.conf.j2")
    return template.render(
        listing_base_path=settings.listing_base_path,
        download_base_path=settings.download_base_path,
        upstream=f"{settings.host}:{settings.port}",
        base_dir=str(settings.base_dir).rstrip("/"),
        secret_placeholder=SECRET_PLACEHOLDER,
    )
