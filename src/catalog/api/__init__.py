"""Catalog API package."""

from catalog.api.routes import admin_product_router, product_router

__all__ = ["product_router", "admin_product_router"]
