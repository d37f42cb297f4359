"""
Query orchestrator: rate limit -> cache -> analyze -> scrape -> extract.

One Orchestrator owns the cache, the rate limiter and the in-flight map
for the lifetime of the process. All of its methods run on a single
asyncio loop, so the maps need no locking.

Identical queries (same cache key) that arrive while a scrape for that
key is still running attach to the running pipeline instead of opening
a second tab.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, Optional

from .config import Config
from .errors import RateLimitExceeded
from .extractor import DataExtractor
from .llm import OllamaClient
from .models import ExtractedResult
from .query_analyzer import QueryAnalyzer
from .rate_limiter import CooldownRateLimiter
from .result_cache import ResultCache, normalize_query
from .scrape_executor import ScrapeExecutor
from .tabs import PlaywrightTabs

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    return f"req_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class Orchestrator:
    def __init__(
        self,
        config: Config,
        llm=None,
        tabs=None,
        cache: Optional[ResultCache] = None,
        rate_limiter: Optional[CooldownRateLimiter] = None,
    ):
        self.config = config
        self.llm = llm if llm is not None else OllamaClient(config)
        self.tabs = tabs if tabs is not None else PlaywrightTabs(config)
        self.cache = cache if cache is not None else ResultCache(
            capacity=config.cache_capacity, ttl=config.cache_ttl
        )
        self.rate_limiter = rate_limiter if rate_limiter is not None else CooldownRateLimiter(
            cooldown=config.rate_limit_cooldown, max_keys=config.rate_limit_max_keys
        )
        self.analyzer = QueryAnalyzer(self.llm, config)
        self.executor = ScrapeExecutor(self.tabs, config)
        self.extractor = DataExtractor(self.llm, config)
        self.active_requests: Dict[str, Dict[str, Any]] = {}
        self._pending: Dict[str, asyncio.Future] = {}

    async def process_query(self, query: str, context: Any = None) -> ExtractedResult:
        """
        Run the full pipeline for ``query``.

        Raises:
            RateLimitExceeded: same raw query accepted less than the cooldown ago
            ScrapeFailed: the scrape stage failed (its tab is already closed)
        """
        if not self.rate_limiter.check(query):
            raise RateLimitExceeded(retry_after=self.rate_limiter.retry_after(query))

        key = normalize_query(query)
        if self.config.cache_enabled:
            cached = self.cache.get(key)
            if cached is not None:
                logger.info(f"Returning cached result for: {query!r}")
                return cached

        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._run_pipeline(query, key, context))
            self._pending[key] = pending
            pending.add_done_callback(lambda task: self._forget_pending(key, task))
        else:
            logger.info(f"Attaching to in-flight scrape for: {query!r}")
        # shield: one caller going away must not cancel work others wait on
        return await asyncio.shield(pending)

    def _forget_pending(self, key: str, task: asyncio.Future) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    async def _run_pipeline(self, query: str, key: str, context: Any = None) -> ExtractedResult:
        request_id = new_request_id()
        started = time.monotonic()
        self.active_requests[request_id] = {
            "query": query,
            "start_time": time.time(),
            "context": context,
        }
        logger.info(f"Processing query: {query!r} ({request_id})")
        try:
            analysis = await self.analyzer.analyze(query)
            scraping = await self.executor.scrape(analysis)
            result = await self.extractor.extract(scraping)
        except Exception as e:
            logger.error(f"Error processing query {query!r}: {e}")
            raise
        finally:
            self.active_requests.pop(request_id, None)

        if self.config.cache_enabled:
            self.cache.set(key, result)
        logger.info(
            f"Query processed: {query!r} -> {result.total_results} results "
            f"({result.source.value}) in {time.monotonic() - started:.1f}s"
        )
        return result

    async def get_status(self) -> Dict[str, Any]:
        return {
            "activeRequests": len(self.active_requests),
            "cacheSize": len(self.cache),
            "gemmaConnected": await self.llm.ping(),
        }

    def clear_cache(self) -> int:
        count = self.cache.clear()
        logger.info(f"Cache cleared ({count} entries)")
        return count

    async def close(self) -> None:
        await self.tabs.close()
