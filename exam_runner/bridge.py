"""
Event loop bridge for synchronous callers.

Streamlit reruns the page script on every interaction; the session, its timer
and its writes live on one long-lived loop thread and are only touched from there.
"""
import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable, Coroutine, Optional

logger = logging.getLogger(__name__)


class LoopBridge:
    """Runs coroutines and plain calls on a background event loop."""

    DEFAULT_TIMEOUT_SECONDS = 30.0

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS, name: str = "exam-loop"):
        self.timeout = timeout
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self.loop.run_forever, name=name, daemon=True)
        self._thread.start()

    def run(self, coro: Coroutine, timeout: Optional[float] = None) -> Any:
        """
        Run coro on the loop and wait for its result.

        Returns None if it has not finished within timeout; it keeps running
        on the loop and the caller is expected to look again later.
        """
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            return future.result(timeout if timeout is not None else self.timeout)
        except concurrent.futures.TimeoutError:
            logger.warning(f"Still running after {timeout or self.timeout}s, leaving it on the loop")
            return None

    def call(self, fn: Callable, *args) -> Any:
        """Run a plain function on the loop thread."""
        async def _call():
            return fn(*args)
        return self.run(_call())

    def stop(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(self.timeout)
