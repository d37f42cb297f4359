"""RPC endpoints: extension messages and the context-menu trigger"""

import concurrent.futures
import logging

from flask import Blueprint, request, jsonify

from smartscrape_core.errors import format_user_friendly_error
from smartscrape_server.state import get_state

logger = logging.getLogger(__name__)

messages_bp = Blueprint('messages', __name__)


def _run(state, coro, action):
    """Run one RPC on the service loop; returns (body, status)."""
    try:
        return state.run(coro), 200
    except concurrent.futures.TimeoutError:
        error = TimeoutError(f"Request timeout after {state.request_timeout:g}s ({action})")
        logger.error(f"RPC {action!r} exceeded {state.request_timeout:g}s")
        return {
            "success": False,
            "error": str(error),
            "errorType": "TimeoutError",
            "errorInfo": format_user_friendly_error(error, context=str(action)),
        }, 504


@messages_bp.route('/api/message', methods=['POST'])
def message():
    """Dispatch one extension message ({"action": ..., ...})"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Request body must be a JSON object"}), 400

    state = get_state()
    sender = {"remote_addr": request.remote_addr, "origin": request.headers.get("Origin")}
    body, status = _run(state, state.dispatcher.handle(data, sender=sender), data.get("action"))
    return jsonify(body), status


@messages_bp.route('/api/context-menu', methods=['POST'])
def context_menu():
    """Right-click "Smart Scrape" on a text selection"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Request body must be a JSON object"}), 400

    state = get_state()
    body, status = _run(state, state.dispatcher.handle_context_menu(
        data.get('menuItemId', ''),
        data.get('selectionText'),
        tab=data.get('tab'),
    ), "contextMenu")
    if not body.get("success"):
        logger.warning(f"Context-menu scrape failed: {body.get('error')}")
    return jsonify(body), status
