"""API routers."""

from orderdesk.api.routes import auth, health, orders

__all__ = ["auth", "health", "orders"]
