"""Shared BDD fixtures and step definitions for the Ordering domain."""

from decimal import Decimal

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from catalog.product.management import CreateProduct
from catalog.product.product import Product
from identity import account
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder


@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


@pytest.fixture()
def catalog():
    """Product ids by name, filled by the Given steps."""
    return {}


@pytest.fixture()
def place(catalog):
    """Place an order for ``(product name, quantity)`` rows and return its id."""

    def _place(customer_id, rows) -> str:
        lines = [{"product_id": catalog[name], "quantity": quantity} for name, quantity in rows]
        command = PlaceOrder(user_id=customer_id, products=lines)
        return current_domain.process(command, asynchronous=False)["id"]

    return _place


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a registered customer", target_fixture="customer_id")
def registered_customer():
    return account.register("Jane Customer", "jane@example.com", "password123")["user"]["id"]


@given(parsers.cfparse('a product "{name}" priced {price} with {stock:d} in stock'))
def product_in_catalog(catalog, name, price, stock):
    result = current_domain.process(CreateProduct(name=name, price=price, stock=stock), asynchronous=False)
    catalog[name] = result["id"]


@given(parsers.cfparse('the customer has ordered {quantity:d} "{name}"'), target_fixture="order_id")
def customer_has_ordered(customer_id, place, quantity, name):
    return place(customer_id, [(name, quantity)])


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total}"))
def order_total_is(order_id, total):
    assert current_domain.repository_for(Order).get(order_id).total_amount == Decimal(total)


@then("the order total equals the sum of its lines")
def order_total_matches_lines(order_id):
    order = current_domain.repository_for(Order).get(order_id)
    assert order.items
    assert order.total_amount == sum((item.subtotal for item in order.items), Decimal("0"))


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('the product "{name}" has {stock:d} in stock'))
def product_has_stock(catalog, name, stock):
    assert current_domain.repository_for(Product).get(catalog[name]).stock == stock


@then(parsers.cfparse('the change is rejected with an error on "{field}"'))
def change_rejected(error, field):
    assert isinstance(error["exc"], ValidationError)
    assert field in error["exc"].messages
