"""Dedicated asyncio loop thread shared by all Flask request threads"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)


class LoopRunner:
    """
    Owns one event loop running in a daemon thread.

    The orchestrator's cache, rate limiter, in-flight map and browser are
    bound to this loop, so every coroutine touching them must be
    submitted through ``run``.
    """

    def __init__(self, name: str = "smartscrape-loop"):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._serve, name=name, daemon=True)
        self._started = False

    def _serve(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def start(self) -> "LoopRunner":
        if not self._started:
            self._thread.start()
            self._started = True
        return self

    def run(self, coro: Awaitable, timeout: Optional[float] = None) -> Any:
        """Run ``coro`` on the loop thread and block the caller for its result."""
        if not self._started:
            self.start()
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            return future.result(timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise

    def stop(self, timeout: float = 5.0) -> None:
        if not self._started:
            self.loop.close()
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)
        if not self.loop.is_running():
            self.loop.close()
        self._started = False
        logger.debug("Loop runner stopped")
