"""Ordering API package."""

from ordering.api.routes import admin_order_router, my_orders_router, order_router

__all__ = ["my_orders_router", "order_router", "admin_order_router"]
