"""
Cooldown Rate Limiter for Queries

Rejects a query key that was accepted less than ``cooldown`` seconds ago.
A rejected attempt does not move the window; the key becomes available
again ``cooldown`` seconds after its last accepted attempt.

Usage:
    from smartscrape_core.rate_limiter import CooldownRateLimiter

    limiter = CooldownRateLimiter(cooldown=2.0)
    if not limiter.check(query):
        raise RateLimitExceeded()
"""

import logging
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class CooldownRateLimiter:
    """
    Per-key cooldown gate.

    Keys are tracked in accept order and bounded by ``max_keys``; keys
    whose cooldown has elapsed are dropped first since they no longer
    constrain anything.
    """

    def __init__(
        self,
        cooldown: float = 2.0,
        max_keys: int = 1000,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            cooldown: Minimum seconds between accepted attempts of one key
            max_keys: Maximum number of tracked keys
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.cooldown = cooldown
        self.max_keys = max_keys
        self._clock = clock or time.monotonic
        self._last_accepted: "OrderedDict[str, float]" = OrderedDict()

    def check(self, key: str) -> bool:
        """
        Return True and record the attempt if ``key`` may proceed now.

        Args:
            key: Raw query string

        Returns:
            False while the key is inside its cooldown window
        """
        now = self._clock()
        last = self._last_accepted.get(key)
        if last is not None and now - last < self.cooldown:
            logger.info(f"Rate limit hit for {key!r} ({now - last:.2f}s since last request)")
            return False

        self._last_accepted[key] = now
        self._last_accepted.move_to_end(key)
        self._prune(now)
        return True

    def retry_after(self, key: str) -> float:
        """Seconds until ``key`` is accepted again (0 if it already is)."""
        last = self._last_accepted.get(key)
        if last is None:
            return 0.0
        return max(0.0, self.cooldown - (self._clock() - last))

    def _prune(self, now: float) -> None:
        # Oldest first: stop at the first key still cooling down
        while self._last_accepted:
            key, ts = next(iter(self._last_accepted.items()))
            if now - ts < self.cooldown:
                break
            del self._last_accepted[key]
        while len(self._last_accepted) > self.max_keys:
            evicted, _ = self._last_accepted.popitem(last=False)
            logger.debug(f"Rate limiter evicted {evicted!r}")

    def get_stats(self) -> Dict[str, float]:
        return {
            "tracked_keys": len(self._last_accepted),
            "cooldown_seconds": self.cooldown,
            "max_keys": self.max_keys,
        }

    def reset(self, key: Optional[str] = None):
        """
        Reset rate limiting state.

        Args:
            key: Specific key to reset, or None for all
        """
        if key is not None:
            self._last_accepted.pop(key, None)
            logger.debug(f"Rate limiter reset for {key!r}")
        else:
            self._last_accepted.clear()
            logger.debug("Rate limiter reset for all keys")

    def __len__(self) -> int:
        return len(self._last_accepted)
