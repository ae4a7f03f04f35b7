"""Shared BDD fixtures and step definitions for the Catalog domain."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from catalog.product.management import CreateProduct
from catalog.product.product import Product


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" with {stock:d} units in stock'), target_fixture="product")
def stocked_product(name, stock):
    result = current_domain.process(CreateProduct(name=name, price="25.00", stock=stock), asynchronous=False)
    return current_domain.repository_for(Product).get(result["id"])


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the change is rejected with an error on "{field}"'))
def change_rejected(error, field):
    assert isinstance(error["exc"], ValidationError)
    assert field in error["exc"].messages


@then(parsers.cfparse("the product has {stock:d} units in stock"))
def product_has_stock(product, stock):
    assert product.stock == stock


@then(parsers.cfparse("the stored product has {stock:d} units in stock"))
def stored_product_has_stock(product, stock):
    assert current_domain.repository_for(Product).get(product.id).stock == stock
