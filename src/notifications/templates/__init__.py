"""Email templates. Each exposes ``render(context) -> {"subject", "body"}``."""

from notifications.templates.admin_order_alert import AdminOrderAlertTemplate

__all__ = ["AdminOrderAlertTemplate"]
