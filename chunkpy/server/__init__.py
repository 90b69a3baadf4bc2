"""HTTP transport adapter (aiohttp)."""
from .routes import create_app, setup_routes, error_response, COORDINATOR_KEY, STATUS_BY_KIND

__all__ = [
    'create_app',
    'setup_routes',
    'error_response',
    'COORDINATOR_KEY',
    'STATUS_BY_KIND',
]
