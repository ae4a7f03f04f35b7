"""Order lifecycle: status changes, item replacement, cancellation and deletion.

Every command carries the acting user. Customers act on their own orders,
admins on any order. Cancelling, deleting or replacing the items of a
pending order returns the old stock.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Dict, Identifier, List, String, Text
from protean.utils.globals import current_domain

from catalog.product.product import Product
from ordering.order.order import Order, OrderItem, OrderStatus
from ordering.order.placement import load_products, reserve_stock, validate_lines
from shared.exceptions import ForbiddenError
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    actor_is_admin: Boolean(default=False)
    reason: String(max_length=500)


@storefront.command(part_of="Order")
class CompleteOrder:
    order_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    actor_is_admin: Boolean(default=False)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    actor_is_admin: Boolean(default=False)
    status: String(required=True, choices=OrderStatus)
    reason: String(max_length=500)


@storefront.command(part_of="Order")
class UpdateOrder:
    """Replace the items of a pending order (when ``products`` is given), then apply ``status``."""

    order_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    actor_is_admin: Boolean(default=False)
    status: String(required=True, choices=OrderStatus)
    products: List(content_type=Dict)
    replace_products: Boolean(default=False)
    notes: Text()
    reason: String(max_length=500)


@storefront.command(part_of="Order")
class DeleteOrder:
    order_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    actor_is_admin: Boolean(default=False)


def ensure_can_access(order: Order, actor_id, actor_is_admin: bool, action: str = "access") -> None:
    if actor_is_admin or order.user_id == actor_id:
        return
    logger.warning("Order access denied", order_id=order.id, user_id=actor_id, action=action)
    raise ForbiddenError(f"You do not have permission to {action} this order")


def get_order(order_id, actor_id, actor_is_admin: bool = False) -> Order:
    order = current_domain.repository_for(Order).get_order(order_id)
    ensure_can_access(order, actor_id, actor_is_admin, "view")
    return order


def _require_reason(status: str, reason: str | None) -> None:
    if status == OrderStatus.CANCELLED.value and not (reason and reason.strip()):
        raise ValidationError({"reason": ["A reason is required to cancel an order"]})


def _restock(items: list[OrderItem], reason: str) -> None:
    repo = current_domain.repository_for(Product)
    for item in items:
        product = repo.get_or_none(item.product_id)
        # Soft-deleted products are not restocked
        if product is not None and not product.is_deleted:
            product.adjust_stock(item.quantity, reason)
            repo.add(product)


def _load(command, action: str) -> Order:
    order = current_domain.repository_for(Order).get_order(command.order_id)
    ensure_can_access(order, command.actor_id, command.actor_is_admin, action)
    return order


@storefront.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(CancelOrder)
    def cancel_order(self, command: CancelOrder) -> dict:
        order = _load(command, "cancel")
        order.cancel(command.reason)
        _restock(order.items, f"Order #{order.id} cancelled")
        current_domain.repository_for(Order).add(order)

        logger.info("Order cancelled", order_id=order.id, user_id=command.actor_id, reason=command.reason)
        return order.to_response()

    @handle(CompleteOrder)
    def complete_order(self, command: CompleteOrder) -> dict:
        order = _load(command, "complete")
        order.complete()
        current_domain.repository_for(Order).add(order)

        logger.info("Order completed", order_id=order.id, user_id=command.actor_id)
        return order.to_response()

    @handle(UpdateOrderStatus)
    def update_status(self, command: UpdateOrderStatus) -> dict:
        _require_reason(command.status, command.reason)
        order = _load(command, "update")
        previous = order.status
        order.transition_to(OrderStatus(command.status), command.reason)
        if command.status == OrderStatus.CANCELLED.value:
            _restock(order.items, f"Order #{order.id} cancelled")
        current_domain.repository_for(Order).add(order)

        logger.info("Order status updated", order_id=order.id, previous_status=previous, new_status=order.status)
        return order.to_response()

    @handle(UpdateOrder)
    def update_order(self, command: UpdateOrder) -> dict:
        lines = validate_lines(command.products) if command.replace_products else None
        _require_reason(command.status, command.reason)
        order = _load(command, "update")

        if lines is not None:
            previous_total = order.total_amount
            _restock(order.clear_items(), f"Order #{order.id} items replaced")

            reason = f"Order #{order.id} items replaced"
            products = load_products(lines)
            for line in lines:
                order.add_item(products[line["product_id"]], line["quantity"])
            reserve_stock(products, lines, reason)
            order.items_replaced(previous_total)

        if command.notes is not None:
            order.update_notes(command.notes)

        if command.status != order.status:
            order.transition_to(OrderStatus(command.status), command.reason)
            if command.status == OrderStatus.CANCELLED.value:
                _restock(order.items, f"Order #{order.id} cancelled")

        current_domain.repository_for(Order).add(order)

        logger.info("Order updated", order_id=order.id, status=order.status, total_amount=float(order.total_amount))
        return order.to_response()

    @handle(DeleteOrder)
    def delete_order(self, command: DeleteOrder) -> None:
        order = _load(command, "delete")
        order.mark_deleted()
        removed = order.clear_items()
        _restock(removed, f"Order #{order.id} deleted")

        repo = current_domain.repository_for(Order)
        repo.add(order)
        repo._dao.delete(order)

        logger.info("Order deleted", order_id=order.id, user_id=command.actor_id)
