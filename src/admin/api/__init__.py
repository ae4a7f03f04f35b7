"""Admin API package."""

from admin.api.routes import router

__all__ = ["router"]
