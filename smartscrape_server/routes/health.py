"""Health check endpoint"""

from flask import Blueprint, jsonify

from smartscrape_core import __version__
from smartscrape_core.messaging import CONTEXT_MENU_ID, CONTEXT_MENU_TITLE
from smartscrape_server.state import get_state

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    state = get_state()
    return jsonify({
        "status": "healthy",
        "model": state.config.llm_model,
        "llm_endpoint": state.config.llm_endpoint,
        "actions": list(state.dispatcher.actions),
        "context_menu": {"id": CONTEXT_MENU_ID, "title": CONTEXT_MENU_TITLE},
        "version": __version__,
    })
