"""Tests for the query pipeline: rate limit, cache, in-flight sharing, cleanup."""

import asyncio

import pytest

from smartscrape_core.errors import RateLimitExceeded, ScrapeFailed
from smartscrape_core.models import ResultSource
from smartscrape_core.orchestrator import Orchestrator, new_request_id
from smartscrape_core.rate_limiter import CooldownRateLimiter
from smartscrape_core.result_cache import ResultCache

from fakes import FakeLLM, FakeTabs, product_payload


def build(config, clock, tabs=None, llm=None):
    return Orchestrator(
        config,
        llm=llm or FakeLLM(),
        tabs=tabs or FakeTabs(payload=product_payload()),
        cache=ResultCache(capacity=config.cache_capacity, ttl=config.cache_ttl, clock=clock),
        rate_limiter=CooldownRateLimiter(cooldown=2.0, clock=clock),
    )


@pytest.mark.asyncio
async def test_full_pipeline_direct_scraping(config, clock):
    orchestrator = build(config, clock)

    result = await orchestrator.process_query("gaming laptop")

    assert result.success is True
    assert result.source == ResultSource.DIRECT_SCRAPING
    assert result.total_results == 2
    assert result.url.startswith("https://www.amazon.in/s?k=gaming%20laptop")
    assert orchestrator.tabs.removed == [1]
    assert orchestrator.active_requests == {}


@pytest.mark.asyncio
async def test_second_call_served_from_cache(config, clock):
    orchestrator = build(config, clock)

    first = await orchestrator.process_query("laptop")
    clock.advance(3)
    second = await orchestrator.process_query("laptop")

    assert second is first
    assert len(orchestrator.tabs.created) == 1


@pytest.mark.asyncio
async def test_cache_key_is_normalized(config, clock):
    orchestrator = build(config, clock)

    first = await orchestrator.process_query("Laptop")
    second = await orchestrator.process_query("  laptop ")

    assert second is first
    assert len(orchestrator.tabs.created) == 1


@pytest.mark.asyncio
async def test_repeat_inside_cooldown_is_rejected(config, clock):
    orchestrator = build(config, clock)
    await orchestrator.process_query("laptop")

    clock.advance(1.9)
    with pytest.raises(RateLimitExceeded) as excinfo:
        await orchestrator.process_query("laptop")
    assert excinfo.value.retry_after == pytest.approx(0.1)

    clock.advance(0.6)
    result = await orchestrator.process_query("laptop")
    assert result.success is True


@pytest.mark.asyncio
async def test_rejection_does_not_touch_cache_or_tabs(config, clock):
    orchestrator = build(config, clock)
    await orchestrator.process_query("phone")
    orchestrator.clear_cache()

    with pytest.raises(RateLimitExceeded):
        await orchestrator.process_query("phone")

    assert len(orchestrator.cache) == 0
    assert len(orchestrator.tabs.created) == 1


@pytest.mark.asyncio
async def test_clear_cache_forces_new_scrape(config, clock):
    orchestrator = build(config, clock)
    await orchestrator.process_query("laptop")

    assert orchestrator.clear_cache() == 1
    clock.advance(2)
    await orchestrator.process_query("laptop")

    assert len(orchestrator.tabs.created) == 2


@pytest.mark.asyncio
async def test_cache_disabled_always_scrapes(config, clock):
    config.cache_enabled = False
    orchestrator = build(config, clock)

    await orchestrator.process_query("laptop")
    clock.advance(2)
    await orchestrator.process_query("laptop")

    assert len(orchestrator.tabs.created) == 2
    assert len(orchestrator.cache) == 0


@pytest.mark.asyncio
async def test_concurrent_identical_queries_share_one_scrape(config, clock):
    tabs = FakeTabs(payload=product_payload(), load_delay=0.05)
    orchestrator = build(config, clock, tabs=tabs)

    first, second = await asyncio.gather(
        orchestrator.process_query("Laptop"),
        orchestrator.process_query("laptop "),
    )

    assert first is second
    assert len(tabs.created) == 1
    assert orchestrator._pending == {}


@pytest.mark.asyncio
async def test_concurrent_different_queries_run_separately(config, clock):
    tabs = FakeTabs(payload=product_payload(), load_delay=0.01)
    orchestrator = build(config, clock, tabs=tabs)

    await asyncio.gather(
        orchestrator.process_query("laptop"),
        orchestrator.process_query("phone"),
    )

    assert len(tabs.created) == 2
    assert sorted(tabs.removed) == [1, 2]


@pytest.mark.asyncio
async def test_scrape_failure_propagates_and_cleans_up(config, clock):
    tabs = FakeTabs(fail_on="execute")
    orchestrator = build(config, clock, tabs=tabs)

    with pytest.raises(ScrapeFailed):
        await orchestrator.process_query("laptop")

    assert orchestrator.active_requests == {}
    assert orchestrator._pending == {}
    assert tabs.removed == [1]
    assert len(orchestrator.cache) == 0


@pytest.mark.asyncio
async def test_model_analysis_drives_scrape_url(config, clock):
    llm = FakeLLM([
        '{"website": "myntra", "url": "https://www.myntra.com/red-shoes", '
        '"scraping_strategy": "product_list", "selectors": {"primary": ".product-base"}}'
    ])
    orchestrator = build(config, clock, llm=llm)

    await orchestrator.process_query("red shoes")

    assert orchestrator.tabs.created == [(1, "https://www.myntra.com/red-shoes")]


@pytest.mark.asyncio
async def test_empty_scrape_goes_to_model_extraction(config, clock):
    llm = FakeLLM(["no json", '{"extracted_data": [{"title": "Track status"}], "total_results": 1}'])
    tabs = FakeTabs(payload={"html": "<div>In transit</div>", "data": []})
    orchestrator = build(config, clock, tabs=tabs, llm=llm)

    result = await orchestrator.process_query("track package 123")

    assert result.source == ResultSource.GEMMA_EXTRACTION
    assert result.extracted_data[0].title == "Track status"
    assert tabs.created[0][1] == "https://www.bluedart.com/tracking"
    assert "<div>In transit</div>" in llm.prompts[1]


@pytest.mark.asyncio
async def test_status(config, clock):
    orchestrator = build(config, clock, llm=FakeLLM(connected=False))
    await orchestrator.process_query("laptop")

    status = await orchestrator.get_status()

    assert status == {"activeRequests": 0, "cacheSize": 1, "gemmaConnected": False}
    assert orchestrator.llm.pings == 1


@pytest.mark.asyncio
async def test_close_closes_tabs(config, clock):
    orchestrator = build(config, clock)
    await orchestrator.close()
    assert orchestrator.tabs.closed is True


def test_request_id_format():
    request_id = new_request_id()
    prefix, millis, suffix = request_id.split("_")
    assert prefix == "req"
    assert millis.isdigit()
    assert len(suffix) == 9
    assert new_request_id() != request_id



@pytest.mark.asyncio
async def test_status_cache_size_skips_expired_results(config, clock):
    config.cache_ttl = 10
    orchestrator = build(config, clock)
    await orchestrator.process_query("laptop")

    clock.advance(10)
    status = await orchestrator.get_status()

    assert status["cacheSize"] == 0


@pytest.mark.asyncio
async def test_broken_selector_surfaces_page_error(config, clock):
    llm = FakeLLM(["no json", '{"extracted_data": [], "total_results": 7}'])
    tabs = FakeTabs(payload={"html": "", "data": [], "error": "'..x' is not a valid selector"})
    orchestrator = build(config, clock, tabs=tabs, llm=llm)

    result = await orchestrator.process_query("laptop")

    assert result.success is False
    assert result.source == ResultSource.FALLBACK
    assert result.error == "'..x' is not a valid selector"
    assert result.total_results == 0
    assert len(llm.prompts) == 1
