"""
Query analysis: decide which site, URL and selectors serve a query.

The model is asked first; any failure (endpoint down, no JSON, bad shape)
falls through to the keyword rule table, which is evaluated in order and
always produces an answer.

The order of FALLBACK_RULES decides classification for queries that hit
several keywords ("track my phone" is a product query). Reordering it
changes results for existing queries.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple
from urllib.parse import quote

from .config import Config
from .errors import InvalidAnalysis
from .json_extract import extract_json_object
from .models import AnalysisResult, ScrapingStrategy, Selectors, Website
from .prompts import build_analyzer_prompt

logger = logging.getLogger(__name__)


URL_TEMPLATES: Dict[Website, str] = {
    Website.AMAZON: "https://www.amazon.in/s?k={QUERY}",
    Website.FLIGHTS: "https://www.google.com/travel/flights?q={QUERY}",
    Website.TRACKING: "https://www.bluedart.com/tracking",
    Website.GOOGLE: "https://www.google.com/search?q={QUERY}",
    Website.SHOPPING: "https://shopping.google.com/search?q={QUERY}",
    Website.FLIPKART: "https://www.flipkart.com/search?q={QUERY}",
    Website.MYNTRA: "https://www.myntra.com/{QUERY}",
    Website.ZOMATO: "https://www.zomato.com/search?q={QUERY}",
    Website.SWIGGY: "https://www.swiggy.com/search?q={QUERY}",
}


def encode_query(query: str) -> str:
    """Percent-encode like a browser's encodeURIComponent."""
    return quote(query, safe="-_.!~*'()")


def build_url(website: Website, query: str) -> str:
    return URL_TEMPLATES[website].replace("{QUERY}", encode_query(query))


@dataclass(frozen=True)
class FallbackRule:
    keywords: Tuple[str, ...]
    website: Website
    strategy: ScrapingStrategy
    selectors: Selectors

    def matches(self, lowered_query: str) -> bool:
        return any(word in lowered_query for word in self.keywords)

    def analysis_for(self, query: str) -> AnalysisResult:
        return AnalysisResult(
            website=self.website,
            url=build_url(self.website, query),
            scraping_strategy=self.strategy,
            selectors=self.selectors,
        )


FALLBACK_RULES: Tuple[FallbackRule, ...] = (
    FallbackRule(
        keywords=("laptop", "phone", "product"),
        website=Website.AMAZON,
        strategy=ScrapingStrategy.PRODUCT_LIST,
        selectors=Selectors(
            primary='[data-component-type="s-search-result"]',
            secondary=".s-price, .a-price-whole",
        ),
    ),
    FallbackRule(
        keywords=("flight", "travel"),
        website=Website.FLIGHTS,
        strategy=ScrapingStrategy.FLIGHT_SEARCH,
        selectors=Selectors(
            primary=".gws-flights-results__result",
            secondary=".gws-flights-results__price",
        ),
    ),
    FallbackRule(
        keywords=("track", "package"),
        website=Website.TRACKING,
        strategy=ScrapingStrategy.TRACKING_INFO,
        selectors=Selectors(primary=".tracking-info", secondary=".status"),
    ),
    FallbackRule(
        keywords=("restaurant", "food"),
        website=Website.ZOMATO,
        strategy=ScrapingStrategy.RESTAURANT_SEARCH,
        selectors=Selectors(primary=".search-result", secondary=".rating, .cost"),
    ),
)

DEFAULT_RULE = FallbackRule(
    keywords=(),
    website=Website.GOOGLE,
    strategy=ScrapingStrategy.GENERAL_SEARCH,
    selectors=Selectors(primary=".g", secondary=".r a"),
)


def fallback_analysis(query: str) -> AnalysisResult:
    """Deterministic keyword classification; first matching rule wins."""
    lowered = query.lower()
    for rule in FALLBACK_RULES:
        if rule.matches(lowered):
            return rule.analysis_for(query)
    return DEFAULT_RULE.analysis_for(query)


class QueryAnalyzer:
    def __init__(self, llm, config: Config):
        self.llm = llm
        self.config = config

    async def analyze(self, query: str) -> AnalysisResult:
        """Never raises: model problems degrade to fallback_analysis."""
        try:
            analysis = await self._analyze_with_model(query)
        except Exception as e:
            logger.warning(f"Gemma analysis failed, using fallback: {e}")
            return fallback_analysis(query)
        logger.info(f"Gemma analysis: {analysis.website.value} -> {analysis.url}")
        return analysis

    async def _analyze_with_model(self, query: str) -> AnalysisResult:
        text = await self.llm.generate(
            build_analyzer_prompt(query),
            max_tokens=self.config.analysis_max_tokens,
        )
        data = extract_json_object(text)
        try:
            return AnalysisResult.from_dict(data)
        except ValueError as e:
            raise InvalidAnalysis(f"Unusable analysis from model: {e}") from e


__all__ = [
    "URL_TEMPLATES",
    "FALLBACK_RULES",
    "DEFAULT_RULE",
    "FallbackRule",
    "QueryAnalyzer",
    "build_url",
    "encode_query",
    "fallback_analysis",
]
