"""Order placement: command and handler.

Placement runs in one unit of work: validate the requested lines, load the
products, check stock for every line, create the order with price
snapshots, then decrement stock. Any failure rolls everything back, and a
concurrent write to the same product surfaces as a version conflict that
the handler retries.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Dict, Identifier, List, Text
from protean.utils.globals import current_domain

from catalog.product.product import Product
from ordering.order.order import MAX_LINES, MAX_QUANTITY, Order
from shared.exceptions import InsufficientStockError
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    """``products`` holds ``{"product_id", "quantity"}`` items."""

    user_id: Identifier(required=True)
    products: List(content_type=Dict)
    notes: Text()


def validate_lines(lines: list[dict] | None) -> list[dict]:
    """Shape checks that need no database access. Returns normalized lines."""
    lines = lines or []
    errors: dict[str, list[str]] = {}
    if not lines:
        errors["products"] = ["At least one product is required"]
    elif len(lines) > MAX_LINES:
        errors["products"] = [f"Order cannot contain more than {MAX_LINES} products"]

    normalized = [{"product_id": str(line.get("product_id")), "quantity": line.get("quantity")} for line in lines]
    product_ids = [line["product_id"] for line in normalized]
    if len(set(product_ids)) != len(product_ids):
        errors.setdefault("products", []).append("Duplicate products are not allowed")

    for index, line in enumerate(normalized):
        quantity = line["quantity"]
        if not isinstance(quantity, int) or isinstance(quantity, bool) or not 1 <= quantity <= MAX_QUANTITY:
            errors[f"products.{index}.quantity"] = [f"Quantity must be between 1 and {MAX_QUANTITY}"]

    if errors:
        raise ValidationError(errors)
    return normalized


def load_products(lines: list[dict]) -> dict[str, Product]:
    """Fetch the active products named by ``lines``, keyed by id."""
    repo = current_domain.repository_for(Product)
    products = {}
    missing = []
    for line in lines:
        product = repo.get_or_none(line["product_id"])
        if product is None or product.is_deleted:
            missing.append(line["product_id"])
        else:
            products[product.id] = product

    if missing:
        raise ValidationError({"products": [f"Selected product {pid} does not exist" for pid in missing]})
    return products


def reserve_stock(products: dict[str, Product], lines: list[dict], reason: str) -> None:
    """Check every line against current stock, then decrement. Shortages are reported together."""
    shortages = [
        {
            "product_id": line["product_id"],
            "requested": line["quantity"],
            "available": products[line["product_id"]].stock,
        }
        for line in lines
        if products[line["product_id"]].stock < line["quantity"]
    ]
    if shortages:
        raise InsufficientStockError(shortages)

    repo = current_domain.repository_for(Product)
    for line in lines:
        product = products[line["product_id"]]
        product.adjust_stock(-line["quantity"], reason)
        repo.add(product)


@storefront.command_handler(part_of=Order)
class OrderPlacementHandler:
    @handle(PlaceOrder)
    def place_order(self, command: PlaceOrder) -> dict:
        lines = validate_lines(command.products)
        products = load_products(lines)

        order = Order.create(user_id=command.user_id, notes=command.notes)
        for line in lines:
            order.add_item(products[line["product_id"]], line["quantity"])

        reserve_stock(products, lines, f"Order #{order.id} placed")
        order.place()
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=order.id,
            user_id=order.user_id,
            total_amount=float(order.total_amount),
            lines=len(order.items),
        )
        return order.to_response()
