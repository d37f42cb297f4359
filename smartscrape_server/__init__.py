"""
smartscrape_server - HTTP surface for the Smart Scrape extension.
The popup, content script and context menu post messages here.
"""

from smartscrape_server.app import create_app
from smartscrape_server.loop_runner import LoopRunner

__all__ = [
    'create_app',
    'LoopRunner',
]
