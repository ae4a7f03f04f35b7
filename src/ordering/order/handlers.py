"""Drop cached order views when orders change."""

import structlog
from protean import handle

from ordering.order.events import (
    OrderCancelled,
    OrderDeleted,
    OrderLinesReplaced,
    OrderPlaced,
    OrderStatusChanged,
)
from ordering.order.order import Order
from shared.cache import get_cache
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.event_handler(part_of=Order)
class OrderCacheInvalidator:
    def _clear(self, event) -> None:
        removed = get_cache().clear_by_tags(["orders"])
        logger.debug("Order caches cleared", order_id=event.order_id, keys_removed=removed)

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        self._clear(event)

    @handle(OrderLinesReplaced)
    def on_order_lines_replaced(self, event: OrderLinesReplaced) -> None:
        self._clear(event)

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        self._clear(event)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        self._clear(event)

    @handle(OrderDeleted)
    def on_order_deleted(self, event: OrderDeleted) -> None:
        self._clear(event)
