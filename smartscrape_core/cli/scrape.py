"""
Smart Scrape CLI

Run the query pipeline from a terminal.

Usage:
    smartscrape query "gaming laptop under 80000"
    smartscrape query "flights to Mumbai" --json --max-results 5
    smartscrape analyze "restaurants near me" --offline
    smartscrape status
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from smartscrape_core.config import Config
from smartscrape_core.errors import SmartScrapeError, format_user_friendly_error
from smartscrape_core.llm import OllamaClient
from smartscrape_core.models import NO_RATING, PRICE_NOT_FOUND, ExtractedResult
from smartscrape_core.orchestrator import Orchestrator
from smartscrape_core.query_analyzer import QueryAnalyzer, fallback_analysis

logger = logging.getLogger(__name__)


def build_config(args) -> Config:
    config = Config()
    if getattr(args, "endpoint", None):
        config.apply_settings({"gemmaEndpoint": args.endpoint})
    if getattr(args, "model", None):
        config.apply_settings({"gemmaModel": args.model})
    if getattr(args, "max_results", None) is not None:
        config.apply_settings({"maxResults": args.max_results})
    if getattr(args, "no_headless", False):
        config.headless = False
    return config


def format_result(result: ExtractedResult, max_items: int) -> str:
    lines = [
        f"{result.total_results} results • {result.source.value} • {result.strategy}",
        f"URL: {result.url}",
    ]
    if result.page is not None and result.page.title:
        lines.append(f"Page: {result.page.title}")
    if result.error:
        lines.append(f"Note: {result.error}")
    for i, item in enumerate(result.extracted_data[:max_items], 1):
        lines.append("")
        lines.append(f"{i}. {item.title}")
        details = [v for v in (item.price, item.rating) if v not in (PRICE_NOT_FOUND, NO_RATING, "not_found")]
        if details:
            lines.append("   " + " | ".join(details))
        if item.description:
            lines.append(f"   {item.description}")
        if item.link:
            lines.append(f"   {item.link}")
    return "\n".join(lines)


async def _run_query(config: Config, query: str):
    orchestrator = Orchestrator(config)
    try:
        return await orchestrator.process_query(query, context={"source": "cli"})
    finally:
        await orchestrator.close()


def cmd_query(args) -> int:
    config = build_config(args)
    try:
        result = asyncio.run(_run_query(config, args.query))
    except SmartScrapeError as e:
        info = format_user_friendly_error(e, context="cli")
        print(f"✗ {info['message']}: {e}", file=sys.stderr)
        print(f"  {info['suggestion']}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(max_items=config.max_results), indent=2, ensure_ascii=False))
    else:
        print(format_result(result, config.max_results))
    return 0 if result.success else 1


def cmd_analyze(args) -> int:
    config = build_config(args)
    if args.offline:
        analysis = fallback_analysis(args.query)
    else:
        analysis = asyncio.run(QueryAnalyzer(OllamaClient(config), config).analyze(args.query))
    print(json.dumps(analysis.to_dict(), indent=2))
    return 0


def cmd_status(args) -> int:
    config = build_config(args)
    connected = asyncio.run(OllamaClient(config).ping())
    mark = "✓" if connected else "✗"
    print(f"{mark} Model endpoint {config.llm_endpoint} ({config.llm_model}): "
          f"{'connected' if connected else 'offline'}")
    return 0 if connected else 1


def _add_llm_args(p):
    p.add_argument("--endpoint", help="Model endpoint URL (default from SMARTSCRAPE_LLM_ENDPOINT)")
    p.add_argument("--model", help="Model name (default from SMARTSCRAPE_MODEL)")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Smart Scrape - turn a natural-language query into a live scrape",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    query_parser = subparsers.add_parser("query", help="Scrape results for a query")
    query_parser.add_argument("query", help="Natural-language query")
    query_parser.add_argument("--json", action="store_true", help="Print the raw result as JSON")
    query_parser.add_argument("--max-results", type=int, help="Number of items to show")
    query_parser.add_argument("--no-headless", action="store_true", help="Show the browser window")
    _add_llm_args(query_parser)
    query_parser.set_defaults(func=cmd_query)

    analyze_parser = subparsers.add_parser("analyze", help="Show where a query would be scraped")
    analyze_parser.add_argument("query", help="Natural-language query")
    analyze_parser.add_argument("--offline", action="store_true", help="Use keyword rules only")
    _add_llm_args(analyze_parser)
    analyze_parser.set_defaults(func=cmd_analyze)

    status_parser = subparsers.add_parser("status", help="Check the model endpoint")
    _add_llm_args(status_parser)
    status_parser.set_defaults(func=cmd_status)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        return args.func(args)
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
