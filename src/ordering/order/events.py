"""Domain events for the Order aggregate.

``lines`` fields carry a JSON list of
``{product_id, product_name, quantity, unit_price, subtotal}`` dicts.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order and its stock was reserved."""

    __version__ = 1

    order_id: Identifier(required=True)
    user_id: Identifier(required=True)
    total_amount: Float(required=True)
    status: String(required=True, max_length=20)
    lines: Text(required=True)
    placed_at: DateTime(required=True)


@storefront.event(part_of="Order")
class OrderLinesReplaced:
    """A pending order's items were replaced; the old stock was returned first."""

    __version__ = 1

    order_id: Identifier(required=True)
    user_id: Identifier(required=True)
    previous_total: Float(required=True)
    total_amount: Float(required=True)
    lines: Text(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id: Identifier(required=True)
    user_id: Identifier(required=True)
    previous_status: String(required=True, max_length=20)
    new_status: String(required=True, max_length=20)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id: Identifier(required=True)
    user_id: Identifier(required=True)
    reason: String(max_length=500)
    cancelled_at: DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDeleted:
    __version__ = 1

    order_id: Identifier(required=True)
    user_id: Identifier(required=True)
