"""Tests for Product aggregate invariants and the events it raises."""

from decimal import Decimal

import pytest
from catalog.product.events import (
    ProductCreated,
    ProductDeleted,
    ProductRestored,
    ProductStockChanged,
    ProductUpdated,
)
from catalog.product.product import Product, to_money
from shared.exceptions import InsufficientStockError, InvalidOperationError, ValidationError


def _make_product(**overrides):
    defaults = {"name": "Desk Lamp", "price": "25.00", "stock": 5}
    defaults.update(overrides)
    product = Product.create(**defaults)
    product._events.clear()
    return product


class TestProductCreation:
    def test_price_is_rounded_to_cents(self):
        product = _make_product(price="19.999")
        assert product.price == Decimal("20.00")

    def test_name_is_stripped(self):
        product = _make_product(name="  Desk Lamp  ")
        assert product.name == "Desk Lamp"

    def test_identity_is_generated(self):
        assert _make_product().id is not None

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_product(price="0")
        assert "price" in exc.value.messages

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_product(stock=-1)
        assert "stock" in exc.value.messages

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_product(name="   ")
        assert exc.value.messages["name"] == ["Name is required"]

    def test_non_numeric_price_rejected(self):
        with pytest.raises(ValidationError):
            to_money("abc")

    def test_create_raises_product_created(self):
        product = Product.create(name="Desk Lamp", price="25.00", stock=5)

        assert len(product._events) == 1
        event = product._events[0]
        assert isinstance(event, ProductCreated)
        assert event.product_id == product.id
        assert event.price == 25.0


class TestStockInvariant:
    def test_adjust_stock_down(self):
        product = _make_product(stock=5)
        product.adjust_stock(-3, "Order placed")
        assert product.stock == 2

    def test_adjust_stock_to_zero_allowed(self):
        product = _make_product(stock=5)
        product.adjust_stock(-5, "Order placed")
        assert product.stock == 0
        assert product.in_stock is False

    def test_stock_never_goes_negative(self):
        product = _make_product(stock=2)
        with pytest.raises(InsufficientStockError) as exc:
            product.adjust_stock(-3, "Order placed")

        assert product.stock == 2
        assert exc.value.shortages == [{"product_id": product.id, "requested": 3, "available": 2}]

    def test_direct_negative_assignment_violates_invariant(self):
        product = _make_product(stock=2)
        with pytest.raises(ValidationError) as exc:
            product.stock = -1
        assert "stock" in exc.value.messages

    def test_stock_change_raises_event(self):
        product = _make_product(stock=5)
        product.adjust_stock(4, "Restock")

        assert len(product._events) == 1
        event = product._events[0]
        assert isinstance(event, ProductStockChanged)
        assert event.previous_stock == 5
        assert event.new_stock == 9
        assert event.reason == "Restock"

    def test_unchanged_stock_raises_nothing(self):
        product = _make_product(stock=5)
        product.set_stock(5, "Manual stock adjustment")
        assert product._events == []

    def test_set_stock_out_of_range_rejected(self):
        product = _make_product()
        with pytest.raises(ValidationError):
            product.set_stock(-4, "Manual stock adjustment")


class TestProductUpdate:
    def test_returns_changed_fields_only(self):
        product = _make_product()
        changed = product.update(name="Desk Lamp", price="30")
        assert changed == ["price"]
        assert product.price == Decimal("30.00")

    def test_no_changes_raises_nothing(self):
        product = _make_product()
        assert product.update(name="Desk Lamp") == []
        assert product._events == []

    def test_stock_change_through_update_raises_both_events(self):
        product = _make_product(stock=5)
        product.update(stock=8)

        assert [type(e) for e in product._events] == [ProductUpdated, ProductStockChanged]
        assert product._events[0].changed_fields == ["stock"]


class TestSoftDelete:
    def test_soft_delete_marks_deleted(self):
        product = _make_product()
        product.soft_delete()

        assert product.is_deleted
        assert isinstance(product._events[0], ProductDeleted)

    def test_deleted_product_cannot_be_updated(self):
        product = _make_product()
        product.soft_delete()

        with pytest.raises(InvalidOperationError) as exc:
            product.update(price="12")
        assert "Product has been deleted" in str(exc.value)

    def test_restore(self):
        product = _make_product()
        product.soft_delete()
        product._events.clear()

        product.restore()

        assert not product.is_deleted
        assert isinstance(product._events[0], ProductRestored)

    def test_restore_active_product_rejected(self):
        product = _make_product()
        with pytest.raises(InvalidOperationError):
            product.restore()
