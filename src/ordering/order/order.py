"""Order aggregate.

State machine:
    PENDING → PROCESSING → COMPLETED
    PENDING → COMPLETED
    PENDING → CANCELLED

Transitions never go backward. COMPLETED and CANCELLED are terminal, and only
a PENDING order can be cancelled, have its items replaced or be deleted.

The aggregate keeps ``total_amount`` equal to the sum of its item subtotals.
Stock bookkeeping happens in the command handlers, in the same unit of work.
"""

import json
from decimal import Decimal
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text
from protean.fields import Decimal as DecimalField

from shared.db import utcnow
from storefront.domain import storefront

MAX_LINES = 50
MAX_QUANTITY = 1000
MAX_NOTES_LENGTH = 1000


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


@storefront.entity(part_of="Order")
class OrderItem:
    """An order line: a product, a quantity and the unit price at checkout time."""

    product_id: Identifier(required=True)
    product_name: String(max_length=255)
    quantity: Integer(required=True, min_value=1, max_value=MAX_QUANTITY)
    price: DecimalField(required=True, precision=10, scale=2)
    position: Integer(default=0)
    created_at: DateTime(default=utcnow)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def to_line(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": float(self.price),
            "subtotal": float(self.subtotal),
        }

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": float(self.price),
            "subtotal": float(self.subtotal),
        }


@storefront.aggregate
class Order:
    user_id: Identifier(required=True)
    total_amount: DecimalField(precision=10, scale=2, default=Decimal("0.00"))
    status: String(max_length=20, choices=OrderStatus, default=OrderStatus.PENDING.value)
    notes: Text()
    cancellation_reason: String(max_length=500)
    items: HasMany(OrderItem)
    created_at: DateTime(default=utcnow)
    updated_at: DateTime(default=utcnow)

    @invariant.post
    def total_must_equal_sum_of_items(self):
        expected = sum((item.subtotal for item in self.items), Decimal("0.00"))
        if Decimal(self.total_amount or 0) != expected:
            raise ValidationError({"total_amount": ["Total amount must equal the sum of the order items"]})

    @invariant.post
    def items_cannot_exceed_maximum(self):
        if len(self.items) > MAX_LINES:
            raise ValidationError({"products": [f"Order cannot contain more than {MAX_LINES} products"]})

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, notes: str | None = None) -> "Order":
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError({"notes": [f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"]})
        now = utcnow()
        return cls(
            user_id=user_id,
            notes=notes,
            status=OrderStatus.PENDING.value,
            total_amount=Decimal("0.00"),
            created_at=now,
            updated_at=now,
        )

    @property
    def sorted_items(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.position or 0)

    def add_item(self, product, quantity: int) -> OrderItem:
        """Append an item with the product's current price as the snapshot."""
        if not 1 <= quantity <= MAX_QUANTITY:
            raise ValidationError({"quantity": [f"Quantity must be between 1 and {MAX_QUANTITY}"]})
        if len(self.items) >= MAX_LINES:
            raise ValidationError({"products": [f"Order cannot contain more than {MAX_LINES} products"]})
        if any(item.product_id == product.id for item in self.items):
            raise ValidationError({"products": ["Duplicate products are not allowed"]})

        item = OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            price=product.price,
            position=len(self.items),
        )
        with atomic_change(self):
            self.add_items(item)
            self._recalculate_total()
        return item

    def _recalculate_total(self) -> None:
        self.total_amount = sum((item.subtotal for item in self.items), Decimal("0.00"))

    def lines_json(self) -> str:
        return json.dumps([item.to_line() for item in self.sorted_items])

    def place(self) -> None:
        from ordering.order.events import OrderPlaced

        self.raise_(
            OrderPlaced(
                order_id=self.id,
                user_id=self.user_id,
                total_amount=float(self.total_amount),
                status=self.status,
                lines=self.lines_json(),
                placed_at=self.created_at,
            )
        )

    # -------------------------------------------------------------------
    # Modification (PENDING only)
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_pending(self) -> bool:
        return self.current_status == OrderStatus.PENDING

    def _ensure_pending(self, action: str) -> None:
        if not self.is_pending:
            raise InvalidOperationError(
                f"Only pending orders can be {action}",
                extra_info={"status": [f"Order is {self.status}"]},
            )

    def clear_items(self) -> list[OrderItem]:
        """Remove every item and return them, so the caller can restock."""
        self._ensure_pending("modified")
        removed = list(self.items)
        with atomic_change(self):
            if removed:
                self.remove_items(removed)
            self._recalculate_total()
        return removed

    def items_replaced(self, previous_total) -> None:
        from ordering.order.events import OrderLinesReplaced

        self.updated_at = utcnow()
        self.raise_(
            OrderLinesReplaced(
                order_id=self.id,
                user_id=self.user_id,
                previous_total=float(previous_total),
                total_amount=float(self.total_amount),
                lines=self.lines_json(),
            )
        )

    def update_notes(self, notes: str | None) -> None:
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError({"notes": [f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"]})
        self.notes = notes
        self.updated_at = utcnow()

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus) -> None:
        current = self.current_status
        if not can_transition(current, target):
            raise InvalidOperationError(
                f"Cannot change order status from {current.value} to {target.value}",
                extra_info={"status": [f"Cannot transition from {current.value} to {target.value}"]},
            )

    def transition_to(self, target: OrderStatus, reason: str | None = None) -> None:
        from ordering.order.events import OrderStatusChanged

        if target == OrderStatus.CANCELLED:
            self.cancel(reason)
            return

        self._assert_can_transition(target)
        previous = self.status
        self.status = target.value
        self.updated_at = utcnow()
        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                user_id=self.user_id,
                previous_status=previous,
                new_status=self.status,
            )
        )

    def complete(self) -> None:
        self.transition_to(OrderStatus.COMPLETED)

    def cancel(self, reason: str | None = None) -> None:
        """Cancel a pending order. The caller returns the stock."""
        from ordering.order.events import OrderCancelled, OrderStatusChanged

        self._ensure_pending("cancelled")
        previous = self.status
        now = utcnow()
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                user_id=self.user_id,
                previous_status=previous,
                new_status=self.status,
            )
        )
        self.raise_(OrderCancelled(order_id=self.id, user_id=self.user_id, reason=reason, cancelled_at=now))

    def mark_deleted(self) -> None:
        from ordering.order.events import OrderDeleted

        self._ensure_pending("deleted")
        self.raise_(OrderDeleted(order_id=self.id, user_id=self.user_id))

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_response(self, with_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "total_amount": float(self.total_amount),
            "status": self.status,
            "notes": self.notes,
            "cancellation_reason": self.cancellation_reason,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if with_items:
            items = self.sorted_items
            data["products"] = [item.to_response() for item in items]
            data["items_count"] = len(items)
        return data
