"""Signal-driven shutdown coordinator for the server process."""
import asyncio

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """Signals the HTTP server to stop once SIGTERM or SIGINT arrives.

    Attributes:
        timeout: Seconds in-flight requests get to finish.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        """Initialize shutdown coordinator.

        Args:
            timeout: Seconds to wait for in-flight requests.
        """
        self._triggered = False
        self._event = asyncio.Event()
        self.timeout = timeout

    def trigger(self) -> None:
        """Signal waiting tasks to begin shutdown.

        Idempotent - calling multiple times has no additional effect.
        """
        if self._triggered:
            return
        logger.info("shutdown_triggered", timeout_seconds=self.timeout)
        self._triggered = True
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Block until trigger() is called from a task or signal handler."""
        await self._event.wait()
