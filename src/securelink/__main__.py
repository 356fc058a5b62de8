"""Entry point for the listing server.

Usage:
    python -m securelink          run the HTTP server
    python -m securelink nginx    print matching nginx location blocks
"""

import asyncio
import contextlib
import signal
import sys

import structlog
import uvicorn

from securelink.app import create_app
from securelink.config import Settings, load_settings
from securelink.errors import ConfigurationError
from securelink.lifecycle import GracefulShutdown
from securelink.logging import configure_logging
from securelink.nginx import render_nginx_config

logger = structlog.get_logger()


async def serve(settings: Settings) -> None:
    """Run uvicorn server with graceful shutdown support.

    Handles SIGTERM/SIGINT for clean shutdown. Proxy headers are honoured
    only from ``forwarded_allow_ips``.

    Args:
        settings: Server configuration.
    """
    app = create_app(settings)
    shutdown = GracefulShutdown(timeout=settings.shutdown_timeout)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    server = uvicorn.Server(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.trigger)

    async def shutdown_server() -> None:
        """Wait for shutdown signal and stop server."""
        await shutdown.wait_for_trigger()
        server.should_exit = True

    stopper = asyncio.create_task(shutdown_server())
    try:
        await server.serve()
    finally:
        stopper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stopper


def main() -> None:
    """Entry point for python -m securelink."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error("configuration_error", error=str(e))
        sys.exit(1)

    configure_logging(
        debug=settings.debug,
        secret=settings.secret.get_secret_value(),
    )

    if len(sys.argv) >= 2:
        command = sys.argv[1].lower()
        if command != "nginx":
            logger.error("unknown_command", command=command)
            print(__doc__, file=sys.stderr)
            sys.exit(2)
        sys.stdout.write(render_nginx_config(settings))
        sys.exit(0)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(settings))

    sys.exit(0)


if __name__ == "__main__":
    main()
