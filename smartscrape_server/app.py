"""Flask application setup for the Smart Scrape service"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from smartscrape_core.config import Config
from smartscrape_core.messaging import MessageDispatcher
from smartscrape_core.orchestrator import Orchestrator
from smartscrape_server.loop_runner import LoopRunner
from smartscrape_server.routes.health import health_bp
from smartscrape_server.routes.messages import messages_bp
from smartscrape_server.routes.models import models_bp
from smartscrape_server.state import EXTENSION_KEY, ServiceState

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Config] = None,
    orchestrator: Optional[Orchestrator] = None,
    runner: Optional[LoopRunner] = None,
) -> Flask:
    """Build the app around one explicitly constructed orchestrator."""
    if config is None:
        config = orchestrator.config if orchestrator is not None else Config()
    if orchestrator is None:
        orchestrator = Orchestrator(config)
    runner = (runner or LoopRunner()).start()

    app = Flask(__name__)
    # Extension pages call from a chrome-extension:// origin
    CORS(app)

    app.extensions[EXTENSION_KEY] = ServiceState(
        config=config,
        orchestrator=orchestrator,
        dispatcher=MessageDispatcher(orchestrator),
        runner=runner,
    )

    app.register_blueprint(health_bp)
    app.register_blueprint(messages_bp)
    app.register_blueprint(models_bp)
    logger.debug(f"App created (model={config.llm_model}, endpoint={config.llm_endpoint})")
    return app
