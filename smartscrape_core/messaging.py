"""
Message-based RPC surface used by the popup and content scripts.

Every request is a dict with an ``action`` key; every response is a dict
with ``success``. Failures are returned, not raised.
"""

import logging
from typing import Any, Dict, Optional

from .errors import SmartScrapeError, format_user_friendly_error
from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)

CONTEXT_MENU_ID = "scrapeSelection"
CONTEXT_MENU_TITLE = 'Smart Scrape: "%s"'


def failure(error: Exception, context: str) -> Dict[str, Any]:
    return {
        "success": False,
        "error": str(error),
        "errorType": type(error).__name__,
        "errorInfo": format_user_friendly_error(error, context=context),
    }


class MessageDispatcher:
    def __init__(self, orchestrator: Orchestrator):
        self.orchestrator = orchestrator
        self._handlers = {
            "scrapeQuery": self._scrape_query,
            "getStatus": self._get_status,
            "clearCache": self._clear_cache,
            "getSettings": self._get_settings,
            "updateSettings": self._update_settings,
        }

    @property
    def actions(self):
        return tuple(self._handlers)

    async def handle(self, request: Any, sender: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not isinstance(request, dict):
            return {"success": False, "error": "Request must be an object"}
        action = request.get("action")
        handler = self._handlers.get(action)
        if handler is None:
            return {"success": False, "error": "Unknown action"}
        try:
            return await handler(request, sender)
        except (SmartScrapeError, ValueError) as e:
            logger.warning(f"{action} failed: {e}")
            return failure(e, context=action)
        except Exception as e:
            logger.exception(f"Error handling message {action!r}")
            return failure(e, context=action)

    async def _scrape_query(self, request, sender) -> Dict[str, Any]:
        query = request.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ValueError("Query is empty")
        result = await self.orchestrator.process_query(query, context=sender)
        return {
            "success": True,
            "data": result.to_dict(max_items=self.orchestrator.config.max_results),
        }

    async def _get_status(self, request, sender) -> Dict[str, Any]:
        return {"success": True, "status": await self.orchestrator.get_status()}

    async def _clear_cache(self, request, sender) -> Dict[str, Any]:
        self.orchestrator.clear_cache()
        return {"success": True, "message": "Cache cleared"}

    async def _get_settings(self, request, sender) -> Dict[str, Any]:
        return {"success": True, "settings": self.orchestrator.config.settings()}

    async def _update_settings(self, request, sender) -> Dict[str, Any]:
        settings = self.orchestrator.config.apply_settings(request.get("settings"))
        logger.info(f"Settings updated: {settings}")
        return {"success": True, "settings": settings}

    async def handle_context_menu(
        self,
        menu_item_id: str,
        selection_text: Optional[str],
        tab: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Right-click "Smart Scrape" on selected text: the selection is the query."""
        if menu_item_id != CONTEXT_MENU_ID:
            return {"success": False, "error": f"Unknown menu item: {menu_item_id}"}
        return await self.handle(
            {"action": "scrapeQuery", "query": selection_text or ""},
            sender=tab,
        )
