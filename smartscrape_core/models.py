"""
Data model for the query pipeline.

AnalysisResult -> ScrapingResult -> ExtractedResult, one per processed
query. Items coming out of a page (or out of the model) are RawItem;
any field the page did not have carries a "not found" sentinel.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse


NO_TITLE = "No title"
PRICE_NOT_FOUND = "Price not found"
NO_RATING = "No rating"


class Website(str, Enum):
    AMAZON = "amazon"
    FLIGHTS = "flights"
    TRACKING = "tracking"
    GOOGLE = "google"
    SHOPPING = "shopping"
    FLIPKART = "flipkart"
    MYNTRA = "myntra"
    ZOMATO = "zomato"
    SWIGGY = "swiggy"


class ScrapingStrategy(str, Enum):
    PRODUCT_LIST = "product_list"
    FLIGHT_SEARCH = "flight_search"
    TRACKING_INFO = "tracking_info"
    GENERAL_SEARCH = "general_search"
    RESTAURANT_SEARCH = "restaurant_search"


class ResultSource(str, Enum):
    DIRECT_SCRAPING = "direct_scraping"
    GEMMA_EXTRACTION = "gemma_extraction"
    FALLBACK = "fallback"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Selectors:
    primary: str
    secondary: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"primary": self.primary, "secondary": self.secondary}


@dataclass(frozen=True)
class AnalysisResult:
    """Where to scrape for a query: site, URL, strategy and selectors."""
    website: Website
    url: str
    scraping_strategy: ScrapingStrategy
    selectors: Selectors

    def __post_init__(self):
        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"url is not fetchable: {self.url!r}")
        if not self.selectors.primary.strip():
            raise ValueError("primary selector is empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """Build from the model's JSON answer. Raises ValueError on any shape problem."""
        if not isinstance(data, dict):
            raise ValueError("analysis must be a JSON object")
        selectors = data.get("selectors")
        if not isinstance(selectors, dict):
            raise ValueError("analysis.selectors must be an object")
        primary = selectors.get("primary")
        secondary = selectors.get("secondary", "")
        url = data.get("url")
        if not isinstance(primary, str) or not isinstance(secondary, str):
            raise ValueError("selectors must be strings")
        if not isinstance(url, str):
            raise ValueError("analysis.url must be a string")
        return cls(
            website=Website(data.get("website")),
            url=url.strip(),
            scraping_strategy=ScrapingStrategy(data.get("scraping_strategy")),
            selectors=Selectors(primary=primary.strip(), secondary=secondary.strip()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "website": self.website.value,
            "url": self.url,
            "scraping_strategy": self.scraping_strategy.value,
            "selectors": self.selectors.to_dict(),
        }


@dataclass(frozen=True)
class RawItem:
    title: str = NO_TITLE
    price: str = PRICE_NOT_FOUND
    link: str = ""
    description: str = ""
    rating: str = NO_RATING
    extra: Tuple[Tuple[str, Any], ...] = ()

    KNOWN_FIELDS = ("title", "price", "link", "description", "rating")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawItem":
        if not isinstance(data, dict):
            raise ValueError("item must be a JSON object")
        values = {}
        for name in cls.KNOWN_FIELDS:
            value = data.get(name)
            if value is None:
                continue
            values[name] = value if isinstance(value, str) else str(value)
        extra = tuple(
            (k, v) for k, v in data.items() if k not in cls.KNOWN_FIELDS
        )
        return cls(extra=extra, **values)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out.update({
            "title": self.title,
            "price": self.price,
            "link": self.link,
            "description": self.description,
            "rating": self.rating,
        })
        return out


@dataclass(frozen=True)
class PageInfo:
    """Metadata read from the scraped page itself.

    ``structured_data`` holds the page's JSON-LD blocks and OpenGraph tags
    as ``{"type": "json-ld" | "opengraph", "data": ...}`` entries, exactly
    as the page declared them.
    """
    url: str = ""
    title: str = ""
    hostname: str = ""
    description: str = ""
    keywords: str = ""
    author: str = ""
    structured_data: Tuple[Dict[str, Any], ...] = ()

    TEXT_FIELDS = ("url", "title", "hostname", "description", "keywords", "author")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageInfo":
        if not isinstance(data, dict):
            raise ValueError("page info must be an object")
        values = {}
        for name in cls.TEXT_FIELDS:
            value = data.get(name)
            if value is not None:
                values[name] = value if isinstance(value, str) else str(value)
        structured = data.get("structuredData") or []
        if not isinstance(structured, list):
            structured = []
        blocks = tuple(
            block for block in structured
            if isinstance(block, dict) and block.get("type") in ("json-ld", "opengraph")
        )
        return cls(structured_data=blocks, **values)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {name: getattr(self, name) for name in self.TEXT_FIELDS}
        out["structuredData"] = list(self.structured_data)
        return out


@dataclass(frozen=True)
class ScrapingResult:
    url: str
    strategy: ScrapingStrategy
    html: str = ""
    data: Tuple[RawItem, ...] = ()
    error: Optional[str] = None
    page: Optional[PageInfo] = None


@dataclass(frozen=True)
class ExtractedResult:
    """Final unit returned to callers and stored in the cache."""
    success: bool
    source: ResultSource
    url: str
    strategy: str
    extracted_data: Tuple[RawItem, ...] = ()
    total_results: int = 0
    timestamp: int = field(default_factory=now_ms)
    error: Optional[str] = None
    page: Optional[PageInfo] = None

    def to_dict(self, max_items: Optional[int] = None) -> Dict[str, Any]:
        items: List[RawItem] = list(self.extracted_data)
        if max_items is not None:
            items = items[:max_items]
        out: Dict[str, Any] = {
            "success": self.success,
            "source": self.source.value,
            "url": self.url,
            "strategy": self.strategy,
            "extracted_data": [item.to_dict() for item in items],
            "total_results": self.total_results,
            "timestamp": self.timestamp,
        }
        if self.error is not None:
            out["error"] = self.error
        if self.page is not None:
            out["page"] = self.page.to_dict()
        return out
