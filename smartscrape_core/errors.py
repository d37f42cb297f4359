"""
Error types for the query pipeline and a user-friendly error mapper.

Only RateLimitExceeded and ScrapeFailed reach callers as failures.
LLM problems are recovered inside the analyzer and the extractor.
"""

from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class SmartScrapeError(Exception):
    """Base class for pipeline errors"""
    pass


class RateLimitExceeded(SmartScrapeError):
    """Same query repeated inside the cooldown window"""

    def __init__(self, message: str = "Rate limit exceeded. Please wait before making another request.", retry_after: float = 0.0):
        super().__init__(message)
        self.retry_after = retry_after


class ScrapeFailed(SmartScrapeError):
    """Tab creation, navigation or extraction round trip failed"""
    pass


class LLMError(SmartScrapeError):
    """Inference endpoint unreachable or answered with an error"""
    pass


class JSONExtractionError(LLMError):
    """Model output did not contain a parsable JSON object"""
    pass


class InvalidAnalysis(LLMError):
    """Model JSON did not describe a usable analysis"""
    pass


def format_user_friendly_error(
    error: Exception,
    context: str = "general",
    technical_details: Optional[str] = None
) -> Dict:
    """
    Convert a technical error to a user-facing message.

    Args:
        error: The exception that occurred
        context: Where it happened (e.g. "scrape_query", "settings")
        technical_details: Extra technical information

    Returns:
        {"message", "suggestion", "technical", "severity", "can_retry"}
    """
    technical = technical_details or str(error)

    for error_type, friendly in ERROR_TYPE_MAPPINGS:
        if isinstance(error, error_type):
            result = dict(friendly, technical=technical)
            if isinstance(error, RateLimitExceeded) and error.retry_after > 0:
                result["suggestion"] = f"Try again in {error.retry_after:.1f}s"
            return result

    error_str = str(error).lower()
    for pattern, friendly in ERROR_MAPPINGS.items():
        if pattern in error_str:
            result = dict(friendly, technical=technical)
            logger.debug(f"Mapped {context} error to user-friendly: {result['message']}")
            return result

    return {
        "message": "Something went wrong while processing the request",
        "suggestion": "Check the service logs or try again",
        "technical": technical,
        "severity": "error",
        "can_retry": True,
    }


ERROR_TYPE_MAPPINGS = (
    (RateLimitExceeded, {
        "message": "You are searching too quickly",
        "suggestion": "Wait a moment before repeating the same search",
        "severity": "warning",
        "can_retry": True,
    }),
    (ScrapeFailed, {
        "message": "Could not load or read the target page",
        "suggestion": "Check your connection or try a more specific query",
        "severity": "error",
        "can_retry": True,
    }),
    (LLMError, {
        "message": "The local language model is not responding",
        "suggestion": "Make sure the model server is running (ollama serve)",
        "severity": "warning",
        "can_retry": True,
    }),
)

# Error message pattern -> user-friendly info
ERROR_MAPPINGS = {
    "timeout": {
        "message": "The page took too long to respond",
        "suggestion": "Check your internet connection and try again",
        "severity": "warning",
        "can_retry": True,
    },
    "connection refused": {
        "message": "Could not connect to the service",
        "suggestion": "Check that the URL is correct and the service is running",
        "severity": "error",
        "can_retry": True,
    },
    "target closed": {
        "message": "The browser was closed during the operation",
        "suggestion": "Run the search again",
        "severity": "error",
        "can_retry": True,
    },
    "query is empty": {
        "message": "Please enter a search query",
        "suggestion": "Type what you are looking for, e.g. 'laptop under 50000'",
        "severity": "warning",
        "can_retry": False,
    },
    "maxresults": {
        "message": "Invalid settings",
        "suggestion": "Max results must be a positive number",
        "severity": "warning",
        "can_retry": False,
    },
    "invalid endpoint": {
        "message": "Invalid settings",
        "suggestion": "The model endpoint must be an http(s) URL",
        "severity": "warning",
        "can_retry": False,
    },
}
