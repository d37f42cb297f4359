#!/usr/bin/env python3
"""
Browser tab collaborator.

The scrape executor only needs four tab operations: create a background
tab at a URL, wait for it to finish loading, run a function in the page,
and remove it. ``PlaywrightTabs`` provides them on top of a lazily
launched headless Chromium; tests substitute their own implementation.
"""

import asyncio
import itertools
import logging
from typing import Any, Dict, Protocol

from .config import Config

logger = logging.getLogger(__name__)


class BrowserTabs(Protocol):
    async def create(self, url: str) -> int: ...

    async def wait_for_load(self, tab_id: int, timeout: float) -> None: ...

    async def execute(self, tab_id: int, script: str, arg: Any = None) -> Any: ...

    async def remove(self, tab_id: int) -> None: ...

    async def close(self) -> None: ...


class TabNotFound(KeyError):
    pass


class PlaywrightTabs:
    """One Chromium browser, one context, one page per tab."""

    def __init__(self, config: Config):
        self.config = config
        self._playwright = None
        self._browser = None
        self._context = None
        self._pages: Dict[int, Any] = {}
        self._ids = itertools.count(1)
        self._launch_lock = asyncio.Lock()

    async def _ensure_context(self):
        async with self._launch_lock:
            if self._context is not None:
                return self._context
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
            launch_args = {
                "headless": bool(self.config.headless),
                "args": [
                    "--no-sandbox",
                    "--disable-dev-shm-usage",
                    "--disable-blink-features=AutomationControlled",
                ],
            }
            try:
                self._browser = await self._playwright.chromium.launch(**launch_args)
            except Exception:
                await self._playwright.stop()
                self._playwright = None
                raise
            self._context = await self._browser.new_context(
                viewport={"width": 1366, "height": 900},
                extra_http_headers={
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
                },
            )
            logger.info(f"Chromium launched (headless={self.config.headless})")
            return self._context

    def _page(self, tab_id: int):
        page = self._pages.get(tab_id)
        if page is None:
            raise TabNotFound(tab_id)
        return page

    async def create(self, url: str) -> int:
        context = await self._ensure_context()
        page = await context.new_page()
        tab_id = next(self._ids)
        self._pages[tab_id] = page
        try:
            # Start navigation only; waiting for "load" is a separate step
            await page.goto(url, wait_until="commit")
        except Exception:
            await self.remove(tab_id)
            raise
        logger.debug(f"Tab {tab_id} opened at {url}")
        return tab_id

    async def wait_for_load(self, tab_id: int, timeout: float) -> None:
        page = self._page(tab_id)
        await page.wait_for_load_state("load", timeout=timeout * 1000)

    async def execute(self, tab_id: int, script: str, arg: Any = None) -> Any:
        page = self._page(tab_id)
        return await page.evaluate(script, arg)

    async def remove(self, tab_id: int) -> None:
        page = self._pages.pop(tab_id, None)
        if page is None:
            return
        await page.close()
        logger.debug(f"Tab {tab_id} closed")

    @property
    def open_tabs(self) -> int:
        return len(self._pages)

    async def close(self) -> None:
        for tab_id in list(self._pages):
            try:
                await self.remove(tab_id)
            except Exception as e:
                logger.warning(f"Failed to close tab {tab_id}: {e}")
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
