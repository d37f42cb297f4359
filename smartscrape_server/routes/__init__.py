"""Routes module for Flask endpoints"""

from smartscrape_server.routes.health import health_bp
from smartscrape_server.routes.messages import messages_bp
from smartscrape_server.routes.models import models_bp

__all__ = ['health_bp', 'messages_bp', 'models_bp']
