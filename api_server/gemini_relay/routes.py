from .routes_health import register_health_routes
from .routes_hooks import register_request_hooks
from .routes_proxy import register_proxy_routes


def register_routes(app):
    register_request_hooks(app)
    register_health_routes(app)
    register_proxy_routes(app)
