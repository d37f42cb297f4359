"""Per-app service state shared by the route blueprints"""

import logging
from dataclasses import dataclass

from flask import current_app

from smartscrape_core.config import Config
from smartscrape_core.messaging import MessageDispatcher
from smartscrape_core.orchestrator import Orchestrator
from smartscrape_server.loop_runner import LoopRunner

logger = logging.getLogger(__name__)

EXTENSION_KEY = "smartscrape"


@dataclass
class ServiceState:
    config: Config
    orchestrator: Orchestrator
    dispatcher: MessageDispatcher
    runner: LoopRunner
    # Upper bound for one blocking RPC round trip from a request thread
    request_timeout: float = 300.0

    def run(self, coro):
        return self.runner.run(coro, timeout=self.request_timeout)

    def shutdown(self) -> None:
        try:
            self.runner.run(self.orchestrator.close(), timeout=30)
        except Exception as e:
            logger.warning(f"Browser shutdown failed: {e}")
        self.runner.stop()


def get_state() -> ServiceState:
    return current_app.extensions[EXTENSION_KEY]
