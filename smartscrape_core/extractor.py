"""
Data Extractor

Turns a ScrapingResult into the final ExtractedResult. Selector hits are
returned as they are; only an empty scrape is sent to the model, and a
model failure degrades to a "fallback" result carrying the real (empty)
scrape data. A scrape whose in-page script failed before capturing any
HTML goes straight to the fallback: there is nothing for the model to read.

``total_results`` is always the number of items actually returned and
``url`` the page that was scraped; counts or URLs claimed by the model
are not passed on.
"""

import logging
from typing import Any, Dict

from .config import Config
from .errors import JSONExtractionError
from .json_extract import extract_json_object
from .models import ExtractedResult, RawItem, ResultSource, ScrapingResult
from .prompts import build_extractor_prompt

logger = logging.getLogger(__name__)


class DataExtractor:
    def __init__(self, llm, config: Config):
        self.llm = llm
        self.config = config

    async def extract(self, scraping: ScrapingResult) -> ExtractedResult:
        if scraping.data:
            return ExtractedResult(
                success=True,
                source=ResultSource.DIRECT_SCRAPING,
                url=scraping.url,
                strategy=scraping.strategy.value,
                extracted_data=scraping.data,
                total_results=len(scraping.data),
                error=scraping.error,
                page=scraping.page,
            )

        if scraping.error and not scraping.html:
            logger.warning(f"Skipping Gemma extraction, page script failed: {scraping.error}")
            return self._fallback(scraping, scraping.error)

        try:
            return await self._extract_with_model(scraping)
        except Exception as e:
            logger.warning(f"Gemma extraction failed: {e}")
            return self._fallback(scraping, str(e))

    def _fallback(self, scraping: ScrapingResult, error: str) -> ExtractedResult:
        return ExtractedResult(
            success=False,
            source=ResultSource.FALLBACK,
            url=scraping.url,
            strategy=scraping.strategy.value,
            extracted_data=scraping.data,
            total_results=len(scraping.data),
            error=error,
            page=scraping.page,
        )

    async def _extract_with_model(self, scraping: ScrapingResult) -> ExtractedResult:
        html = scraping.html[:self.config.extraction_html_chars]
        text = await self.llm.generate(
            build_extractor_prompt(html),
            max_tokens=self.config.extraction_max_tokens,
        )
        payload = extract_json_object(text)
        items = _items_from_payload(payload)
        claimed = payload.get("total_results")
        if claimed is not None and claimed != len(items):
            logger.debug(f"Ignoring model total_results={claimed!r}, {len(items)} items returned")
        logger.info(f"Gemma extracted {len(items)} items from {scraping.url}")
        return ExtractedResult(
            success=True,
            source=ResultSource.GEMMA_EXTRACTION,
            url=scraping.url,
            strategy=scraping.strategy.value,
            extracted_data=tuple(items),
            total_results=len(items),
            error=scraping.error,
            page=scraping.page,
        )


def _items_from_payload(payload: Dict[str, Any]):
    data = payload.get("extracted_data")
    if not isinstance(data, list):
        raise JSONExtractionError("Model JSON has no extracted_data list")
    return [RawItem.from_dict(item) for item in data]
