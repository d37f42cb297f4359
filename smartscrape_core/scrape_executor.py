"""
Scrape Executor

Opens a background tab at the analysed URL, waits for load plus a settle
delay, runs the extraction script inside the page and always removes the
tab again, whichever way the scrape ends.

Usage:
    executor = ScrapeExecutor(PlaywrightTabs(config), config)
    scraping = await executor.scrape(analysis)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .config import Config
from .errors import ScrapeFailed
from .models import AnalysisResult, PageInfo, RawItem, ScrapingResult

logger = logging.getLogger(__name__)


# Runs in the page. Every field falls back to a "not found" sentinel and
# any exception is reported in the result instead of thrown. Page metadata
# is collected separately so it survives a broken item selector.
EXTRACT_PAGE_CONTENT_JS = """
(opts) => {
    const text = (el) => (el && el.textContent) ? el.textContent.trim() : '';
    const query = (root, selector) => {
        try { return root.querySelector(selector); } catch (e) { return null; }
    };
    const firstText = (root, selectors) => {
        for (const selector of selectors) {
            const value = text(query(root, selector));
            if (value) return value;
        }
        return '';
    };
    const TITLE_SELECTORS = ['h1', 'h2', 'h3', '.title', '[class*="title"]', '.name', '[class*="name"]', '.product-name'];
    const PRICE_SELECTORS = ['.price', '[class*="price"]', '[data-price]', '.cost', '[class*="cost"]', '.amount'];
    const RATING_SELECTORS = ['.rating', '[class*="rating"]', '[data-rating]', '.stars', '[class*="star"]', '.score'];

    const pageInfo = () => {
        try {
            const meta = (name) => {
                const el = document.querySelector(`meta[name="${name}"]`);
                return (el && el.content) ? el.content : '';
            };
            const structured = [];
            document.querySelectorAll('script[type="application/ld+json"]').forEach((script) => {
                if (structured.length >= opts.maxStructuredBlocks) return;
                try {
                    structured.push({ type: 'json-ld', data: JSON.parse(script.textContent) });
                } catch (e) {
                    // invalid JSON-LD block
                }
            });
            const openGraph = {};
            document.querySelectorAll('meta[property^="og:"]').forEach((tag) => {
                const property = tag.getAttribute('property');
                const content = tag.getAttribute('content');
                if (property && content) openGraph[property] = content;
            });
            if (Object.keys(openGraph).length > 0) {
                structured.push({ type: 'opengraph', data: openGraph });
            }
            return {
                url: window.location.href,
                title: document.title || '',
                hostname: window.location.hostname,
                description: meta('description'),
                keywords: meta('keywords'),
                author: meta('author'),
                structuredData: structured
            };
        } catch (e) {
            return null;
        }
    };

    try {
        const data = [];
        const elements = document.querySelectorAll(opts.primary);
        for (let index = 0; index < elements.length && index < opts.maxItems; index++) {
            const element = elements[index];
            let price = opts.secondary ? text(query(element, opts.secondary)) : '';
            if (!price) price = firstText(element, PRICE_SELECTORS);
            const linkEl = element.querySelector('a[href]');
            data.push({
                title: firstText(element, TITLE_SELECTORS) || 'No title',
                price: price || 'Price not found',
                link: (linkEl && linkEl.href) ? linkEl.href : '',
                description: text(element.querySelector('.description, p')).substring(0, opts.descriptionChars),
                rating: firstText(element, RATING_SELECTORS) || 'No rating'
            });
        }
        return {
            html: document.documentElement.outerHTML.substring(0, opts.maxHtmlChars),
            data: data,
            page: pageInfo(),
            timestamp: Date.now()
        };
    } catch (error) {
        return {
            html: '',
            data: [],
            page: pageInfo(),
            error: String(error && error.message ? error.message : error),
            timestamp: Date.now()
        };
    }
}
"""


class ScrapeExecutor:
    def __init__(self, tabs, config: Config):
        self.tabs = tabs
        self.config = config

    def _script_args(self, analysis: AnalysisResult) -> Dict[str, Any]:
        return {
            "primary": analysis.selectors.primary,
            "secondary": analysis.selectors.secondary,
            "maxItems": self.config.max_items,
            "maxHtmlChars": self.config.max_html_chars,
            "descriptionChars": self.config.description_chars,
            "maxStructuredBlocks": self.config.max_structured_blocks,
        }

    async def scrape(self, analysis: AnalysisResult) -> ScrapingResult:
        """
        Scrape the page described by ``analysis``.

        Raises:
            ScrapeFailed: tab could not be created, never finished loading,
                or the script round trip failed. The tab is removed first.
        """
        logger.info(f"Scraping: {analysis.url}")
        try:
            tab_id = await self.tabs.create(analysis.url)
        except Exception as e:
            raise ScrapeFailed(f"Scraping failed: could not open tab: {e}") from e

        try:
            await self.tabs.wait_for_load(tab_id, self.config.navigation_timeout)
            # Heuristic wait for client-rendered content
            if self.config.settle_delay > 0:
                await asyncio.sleep(self.config.settle_delay)
            payload = await self.tabs.execute(
                tab_id, EXTRACT_PAGE_CONTENT_JS, self._script_args(analysis)
            )
        except Exception as e:
            logger.error(f"Scraping failed for {analysis.url}: {e}")
            raise ScrapeFailed(f"Scraping failed: {e}") from e
        finally:
            await self._remove_tab(tab_id)

        return self._to_result(analysis, payload)

    async def _remove_tab(self, tab_id: int) -> None:
        try:
            await self.tabs.remove(tab_id)
        except Exception as e:
            logger.warning(f"Failed to remove scraping tab {tab_id}: {e}")

    def _to_result(self, analysis: AnalysisResult, payload: Any) -> ScrapingResult:
        if not isinstance(payload, dict):
            raise ScrapeFailed(f"Scraping failed: unexpected extraction payload {type(payload).__name__}")

        items: List[RawItem] = []
        for raw in payload.get("data") or []:
            try:
                items.append(RawItem.from_dict(raw))
            except ValueError as e:
                logger.debug(f"Skipping malformed scraped item: {e}")

        error = payload.get("error")
        if error:
            logger.warning(f"In-page extraction error on {analysis.url}: {error}")

        html = payload.get("html") or ""
        return ScrapingResult(
            url=analysis.url,
            strategy=analysis.scraping_strategy,
            html=html[:self.config.max_html_chars],
            data=tuple(items[:self.config.max_items]),
            error=str(error) if error else None,
            page=_page_info(payload.get("page")),
        )


def _page_info(raw: Any) -> Optional[PageInfo]:
    if raw is None:
        return None
    try:
        return PageInfo.from_dict(raw)
    except ValueError as e:
        logger.debug(f"Ignoring malformed page info: {e}")
        return None
