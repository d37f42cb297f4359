"""Shared fixtures for the pipeline tests."""

import pytest

from smartscrape_core.config import Config

from fakes import FakeClock


@pytest.fixture
def config():
    return Config(
        llm_endpoint="http://llm.test/api/generate",
        llm_model="gemma2:3b",
        settle_delay=0.0,
        navigation_timeout=1.0,
        cache_ttl=0.0,
        cache_enabled=True,
        max_results=20,
        max_items=20,
        max_html_chars=50000,
        extraction_html_chars=10000,
        description_chars=200,
        max_structured_blocks=10,
        status_timeout=5.0,
    )


@pytest.fixture
def clock():
    return FakeClock()
