"""
Unit tests for the error types and the user-friendly error mapper.
"""

import pytest

from smartscrape_core.errors import (
    InvalidAnalysis,
    JSONExtractionError,
    LLMError,
    RateLimitExceeded,
    ScrapeFailed,
    SmartScrapeError,
    format_user_friendly_error,
)


def test_hierarchy():
    for error_type in (RateLimitExceeded, ScrapeFailed, LLMError):
        assert issubclass(error_type, SmartScrapeError)
    assert issubclass(JSONExtractionError, LLMError)
    assert issubclass(InvalidAnalysis, LLMError)


def test_rate_limit_default_message():
    error = RateLimitExceeded(retry_after=1.5)
    assert str(error) == "Rate limit exceeded. Please wait before making another request."
    assert error.retry_after == 1.5


def test_format_rate_limit_error():
    """Rate limit gets a retry hint."""
    result = format_user_friendly_error(RateLimitExceeded(retry_after=1.5))

    assert result["severity"] == "warning"
    assert result["can_retry"] is True
    assert result["suggestion"] == "Try again in 1.5s"
    assert result["technical"].startswith("Rate limit exceeded")


def test_format_scrape_failed():
    result = format_user_friendly_error(ScrapeFailed("Scraping failed: Target closed"))

    assert "target page" in result["message"]
    assert result["severity"] == "error"


def test_format_timeout_error():
    """Timeout error mapping by message."""
    result = format_user_friendly_error(TimeoutError("Page timeout exceeded"))

    assert "too long" in result["message"]
    assert result["severity"] == "warning"
    assert result["can_retry"] is True


def test_format_empty_query():
    result = format_user_friendly_error(ValueError("Query is empty"))

    assert result["can_retry"] is False
    assert result["technical"] == "Query is empty"


def test_format_unknown_error():
    """Unknown error fallback."""
    result = format_user_friendly_error(RuntimeError("Some random error"))

    assert "went wrong" in result["message"]
    assert "logs" in result["suggestion"]
    assert result["severity"] == "error"
    assert result["can_retry"] is True


def test_technical_details_override():
    result = format_user_friendly_error(RuntimeError("x"), technical_details="stack trace here")
    assert result["technical"] == "stack trace here"


@pytest.mark.parametrize("error", [
    ValueError("maxResults must be a positive integer"),
    ValueError("invalid endpoint URL: 'ftp://x'"),
])
def test_settings_errors_are_not_retryable(error):
    result = format_user_friendly_error(error, context="updateSettings")
    assert result["message"] == "Invalid settings"
    assert result["can_retry"] is False
