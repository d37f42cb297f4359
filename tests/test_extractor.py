import json

import pytest

from smartscrape_core.errors import LLMError
from smartscrape_core.extractor import DataExtractor
from smartscrape_core.models import PageInfo, RawItem, ResultSource, ScrapingResult, ScrapingStrategy

from fakes import FakeLLM


def scraping(data=(), html="<html><div class='r'>Pad Thai 250</div></html>"):
    return ScrapingResult(
        url="https://www.zomato.com/search?q=food",
        strategy=ScrapingStrategy.RESTAURANT_SEARCH,
        html=html,
        data=tuple(data),
    )


@pytest.mark.asyncio
async def test_direct_scraping_skips_model(config):
    llm = FakeLLM()
    items = [RawItem(title="Pizza Place", price="₹400")]

    result = await DataExtractor(llm, config).extract(scraping(items))

    assert result.success is True
    assert result.source == ResultSource.DIRECT_SCRAPING
    assert result.extracted_data == tuple(items)
    assert result.total_results == 1
    assert result.strategy == "restaurant_search"
    assert llm.prompts == []


@pytest.mark.asyncio
async def test_model_extraction_when_no_items(config):
    answer = {
        "extracted_data": [
            {"title": "Pad Thai", "price": "250", "rating": "not_found", "additional_info": "veg"},
        ],
        "total_results": 1,
        "source_url": "https://www.zomato.com/search?q=food",
    }
    llm = FakeLLM([f"Result:\n```json\n{json.dumps(answer)}\n```"])

    result = await DataExtractor(llm, config).extract(scraping())

    assert result.success is True
    assert result.source == ResultSource.GEMMA_EXTRACTION
    assert result.total_results == 1
    item = result.extracted_data[0]
    assert item.title == "Pad Thai"
    assert item.rating == "not_found"
    assert item.to_dict()["additional_info"] == "veg"


@pytest.mark.asyncio
async def test_prompt_embeds_truncated_html(config):
    config.extraction_html_chars = 30
    llm = FakeLLM(['{"extracted_data": []}'])
    html = "<html>" + "a" * 100 + "MARKER</html>"

    await DataExtractor(llm, config).extract(scraping(html=html))

    assert ("<html>" + "a" * 24) in llm.prompts[0]
    assert "MARKER" not in llm.prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("claimed", ["7", "0", "-1", "\"many\"", "null"])
async def test_total_results_is_item_count(config, claimed):
    llm = FakeLLM([
        '{"extracted_data": [{"title": "A"}, {"title": "B"}], '
        f'"total_results": {claimed}, "source_url": "https://elsewhere.test/"}}'
    ])

    result = await DataExtractor(llm, config).extract(scraping())

    assert result.total_results == 2
    assert result.url == "https://www.zomato.com/search?q=food"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    LLMError("Gemma extraction error: 503"),
    "No structured data here.",
    '{"extracted_data": "nothing"}',
    '{"extracted_data": [1, 2]}',
])
async def test_failures_degrade_to_fallback(config, response):
    llm = FakeLLM([response])

    result = await DataExtractor(llm, config).extract(scraping())

    assert result.success is False
    assert result.source == ResultSource.FALLBACK
    assert result.extracted_data == ()
    assert result.total_results == 0
    assert result.url == "https://www.zomato.com/search?q=food"
    assert result.error


def test_result_to_dict_caps_items_not_total():
    from smartscrape_core.models import ExtractedResult

    result = ExtractedResult(
        success=True,
        source=ResultSource.DIRECT_SCRAPING,
        url="https://x.test",
        strategy="product_list",
        extracted_data=tuple(RawItem(title=str(i)) for i in range(5)),
        total_results=5,
        timestamp=123,
    )

    out = result.to_dict(max_items=2)

    assert [item["title"] for item in out["extracted_data"]] == ["0", "1"]
    assert out["total_results"] == 5
    assert out["source"] == "direct_scraping"
    assert "error" not in out


@pytest.mark.asyncio
async def test_failed_page_script_skips_model(config):
    llm = FakeLLM(['{"extracted_data": [], "total_results": 7}'])
    broken = ScrapingResult(
        url="https://www.zomato.com/search?q=food",
        strategy=ScrapingStrategy.RESTAURANT_SEARCH,
        html="",
        error="'..bad' is not a valid selector",
    )

    result = await DataExtractor(llm, config).extract(broken)

    assert result.success is False
    assert result.source == ResultSource.FALLBACK
    assert result.error == "'..bad' is not a valid selector"
    assert result.total_results == 0
    assert llm.prompts == []


@pytest.mark.asyncio
async def test_page_script_error_is_kept_on_model_result(config):
    llm = FakeLLM(['{"extracted_data": [{"title": "Pad Thai"}]}'])
    partial = ScrapingResult(
        url="https://www.zomato.com/search?q=food",
        strategy=ScrapingStrategy.RESTAURANT_SEARCH,
        html="<div>Pad Thai</div>",
        error="listing widget threw",
    )

    result = await DataExtractor(llm, config).extract(partial)

    assert result.source == ResultSource.GEMMA_EXTRACTION
    assert result.error == "listing widget threw"
    assert result.to_dict()["error"] == "listing widget threw"


@pytest.mark.asyncio
async def test_page_info_is_carried_to_result(config):
    page = PageInfo(title="Food near you", structured_data=({"type": "opengraph", "data": {"og:title": "Zomato"}},))
    scraped = ScrapingResult(
        url="https://www.zomato.com/search?q=food",
        strategy=ScrapingStrategy.RESTAURANT_SEARCH,
        data=(RawItem(title="Pizza Place"),),
        page=page,
    )

    result = await DataExtractor(FakeLLM(), config).extract(scraped)

    assert result.page is page
    assert result.to_dict()["page"]["structuredData"][0]["data"] == {"og:title": "Zomato"}
