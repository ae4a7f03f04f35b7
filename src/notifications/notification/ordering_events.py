"""Notifications reacts to OrderPlaced by queueing an email for the shop admin."""

import json

import structlog
from protean import handle
from protean.utils.globals import current_domain

from identity.user import User
from notifications.notification.notification import Notification, NotificationType
from notifications.templates import AdminOrderAlertTemplate
from ordering.order.events import OrderPlaced
from shared import config
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


def build_context(event: OrderPlaced, customer: User | None) -> dict:
    return {
        "order_id": event.order_id,
        "customer_name": customer.name if customer else "N/A",
        "customer_email": customer.email if customer else "N/A",
        "total_amount": float(event.total_amount),
        "status": event.status,
        "order_date": event.placed_at.strftime("%Y-%m-%d %H:%M:%S"),
        "products": [
            {
                "name": line["product_name"],
                "quantity": line["quantity"],
                "price": line["unit_price"],
                "total": line["subtotal"],
            }
            for line in json.loads(event.lines)
        ],
    }


@storefront.event_handler(part_of=Notification, stream_category="storefront::order")
class OrderingEventsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        customer = current_domain.repository_for(User).get_or_none(event.user_id)
        context = build_context(event, customer)
        rendered = AdminOrderAlertTemplate.render(context)

        notification = Notification.create(
            recipient=config.ADMIN_EMAIL,
            notification_type=NotificationType.ADMIN_ORDER_ALERT.value,
            subject=rendered["subject"],
            body=rendered["body"],
            order_id=event.order_id,
            source_event_type=OrderPlaced.__type__,
        )
        current_domain.repository_for(Notification).add(notification)

        logger.info(
            "Admin notification queued",
            notification_id=notification.id,
            order_id=event.order_id,
            customer_email=context["customer_email"],
            total_amount=context["total_amount"],
            products_count=len(context["products"]),
        )
