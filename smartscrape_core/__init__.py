"""
smartscrape_core package: natural-language query -> live scrape pipeline

Usage:
    from smartscrape_core import Config, Orchestrator

    orchestrator = Orchestrator(Config())
    result = await orchestrator.process_query("gaming laptop under 80000")
"""
from .config import Config
from .errors import (
    SmartScrapeError,
    RateLimitExceeded,
    ScrapeFailed,
    LLMError,
    JSONExtractionError,
    InvalidAnalysis,
)
from .models import (
    Website,
    ScrapingStrategy,
    ResultSource,
    Selectors,
    AnalysisResult,
    RawItem,
    PageInfo,
    ScrapingResult,
    ExtractedResult,
)
from .orchestrator import Orchestrator
from .messaging import MessageDispatcher

__version__ = "1.0.0"

__all__ = [
    "Config",
    "Orchestrator",
    "MessageDispatcher",
    # Errors
    "SmartScrapeError",
    "RateLimitExceeded",
    "ScrapeFailed",
    "LLMError",
    "JSONExtractionError",
    "InvalidAnalysis",
    # Models
    "Website",
    "ScrapingStrategy",
    "ResultSource",
    "Selectors",
    "AnalysisResult",
    "RawItem",
    "PageInfo",
    "ScrapingResult",
    "ExtractedResult",
]
