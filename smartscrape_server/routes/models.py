"""Models endpoint for listing the inference server's models"""

import logging

import requests
from flask import Blueprint, jsonify

from smartscrape_server.state import get_state

logger = logging.getLogger(__name__)

models_bp = Blueprint('models', __name__)


@models_bp.route('/api/models', methods=['GET'])
def list_models():
    """List models available on the local inference server"""
    config = get_state().config
    try:
        response = requests.get(f"{config.llm_host}/api/tags", timeout=config.status_timeout)
        response.raise_for_status()
        return jsonify(response.json())
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Failed to fetch models from {config.llm_host}: {e}")
        return jsonify({"error": "Failed to fetch models"}), 502
