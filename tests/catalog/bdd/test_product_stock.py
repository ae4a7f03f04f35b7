"""BDD tests for product stock levels."""

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

from catalog.product.events import ProductStockChanged
from identity import account
from ordering.order.placement import PlaceOrder

scenarios("features/product_stock.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("{quantity:d} units are removed"))
def _(product, error, quantity):
    try:
        product.adjust_stock(-quantity, "Sold")
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse("the stock is set to {stock:d}"))
def _(product, error, stock):
    try:
        product.set_stock(stock, "Stock count")
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse("a customer orders {quantity:d} units"))
def _(product, error, quantity):
    user_id = account.register("Jane", "jane@example.com", "password123")["user"]["id"]
    command = PlaceOrder(user_id=user_id, products=[{"product_id": product.id, "quantity": quantity}])
    try:
        current_domain.process(command, asynchronous=False)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("a stock change from {previous:d} to {new:d} is recorded"))
def _(product, previous, new):
    event = product._events[-1]
    assert isinstance(event, ProductStockChanged)
    assert event.previous_stock == previous
    assert event.new_stock == new


@then("no stock change is recorded")
def _(product):
    assert not any(isinstance(event, ProductStockChanged) for event in product._events)


@then("the product is out of stock")
def _(product):
    assert product.in_stock is False
