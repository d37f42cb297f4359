"""Main entry point for the Smart Scrape server"""

import logging

import requests

from smartscrape_core.config import Config
from smartscrape_server.app import create_app
from smartscrape_server.state import EXTENSION_KEY

logger = logging.getLogger(__name__)


def check_llm_endpoint(config: Config) -> bool:
    try:
        requests.get(f"{config.llm_host}/api/tags", timeout=config.status_timeout)
        logger.info(f"✓ Connected to model server at {config.llm_host}")
        return True
    except requests.RequestException:
        logger.warning(f"✗ Cannot connect to model server at {config.llm_host}")
        logger.warning("  The server will start, but queries fall back to keyword analysis until it is running (run: 'ollama serve').")
        return False


def main():
    """Run the Smart Scrape API server"""
    config = Config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    check_llm_endpoint(config)
    app = create_app(config)
    logger.info(f"Starting Smart Scrape server on {config.api_host}:{config.api_port}...")
    logger.info(f"Model: {config.llm_model}")
    try:
        app.run(host=config.api_host, port=config.api_port, debug=False, use_reloader=False, threaded=True)
    finally:
        app.extensions[EXTENSION_KEY].shutdown()


if __name__ == '__main__':
    main()
