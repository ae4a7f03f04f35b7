"""Product aggregate.

A product is soft-deleted through ``deleted_at`` and never physically removed,
so order lines keep pointing at it. Stock can never drop below zero: every
change goes through ``adjust_stock``/``set_stock``, an invariant guards the
aggregate and a CHECK constraint backs it up at the database level.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean import invariant
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Integer, String, Text
from protean.fields import Decimal as DecimalField
from sqlalchemy import CheckConstraint

from shared.db import utcnow
from shared.exceptions import InsufficientStockError
from storefront.domain import storefront

MAX_PRICE = Decimal("99999999.99")
MAX_STOCK = 1_000_000


def to_money(value) -> Decimal:
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError({"price": ["Price must be a number"]}) from None


def _validate(name=None, price=None, stock=None) -> dict:
    errors: dict[str, list[str]] = {}
    if name is not None and not name.strip():
        errors.setdefault("name", []).append("Name is required")
    if name is not None and len(name) > 255:
        errors.setdefault("name", []).append("Name cannot exceed 255 characters")
    if price is not None and not (Decimal("0") < price <= MAX_PRICE):
        errors.setdefault("price", []).append("Price must be greater than 0")
    if stock is not None and not (0 <= stock <= MAX_STOCK):
        errors.setdefault("stock", []).append(f"Stock must be between 0 and {MAX_STOCK}")
    return errors


def serialize_product(record) -> dict:
    """Response shape for a product aggregate or a row of its table."""
    return {
        "id": record.id,
        "name": record.name,
        "description": record.description,
        "price": float(record.price),
        "stock": record.stock,
        "in_stock": record.stock > 0,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


@storefront.aggregate
class Product:
    """Product aggregate root."""

    name: String(required=True, max_length=255)
    description: Text()
    price: DecimalField(required=True, precision=10, scale=2)
    stock: Integer(default=0)
    created_at: DateTime(default=utcnow)
    updated_at: DateTime(default=utcnow)
    deleted_at: DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": [f"Stock must be between 0 and {MAX_STOCK}"]})

    @invariant.post
    def price_must_be_positive(self):
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": ["Price must be greater than 0"]})

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @classmethod
    def create(cls, name: str, price, stock: int = 0, description: str | None = None) -> "Product":
        from catalog.product.events import ProductCreated

        price = to_money(price)
        stock = 0 if stock is None else stock
        errors = _validate(name=name, price=price, stock=stock)
        if errors:
            raise ValidationError(errors)

        now = utcnow()
        product = cls(
            name=name.strip(),
            description=description,
            price=price,
            stock=stock,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                name=product.name,
                description=product.description,
                price=float(product.price),
                stock=product.stock,
                created_at=now,
            )
        )
        return product

    def update(self, name=None, description=None, price=None, stock=None) -> list[str]:
        """Apply the given changes and return the names of the fields that changed."""
        from catalog.product.events import ProductStockChanged, ProductUpdated

        self._ensure_active()
        if price is not None:
            price = to_money(price)
        errors = _validate(name=name, price=price, stock=stock)
        if errors:
            raise ValidationError(errors)

        changes = {
            "name": name.strip() if name is not None else None,
            "description": description,
            "price": price,
            "stock": stock,
        }
        changed = [
            field for field, value in changes.items() if value is not None and getattr(self, field) != value
        ]
        if not changed:
            return []

        previous_stock = self.stock
        for field in changed:
            setattr(self, field, changes[field])
        self.updated_at = utcnow()

        self.raise_(
            ProductUpdated(
                product_id=self.id,
                name=self.name,
                description=self.description,
                price=float(self.price),
                stock=self.stock,
                changed_fields=changed,
            )
        )
        if "stock" in changed:
            self.raise_(
                ProductStockChanged(
                    product_id=self.id,
                    previous_stock=previous_stock,
                    new_stock=self.stock,
                    reason="Product updated",
                )
            )
        return changed

    def set_stock(self, quantity: int, reason: str) -> None:
        self._ensure_active()
        errors = _validate(stock=quantity)
        if errors:
            raise ValidationError(errors)
        self._change_stock(quantity, reason)

    def adjust_stock(self, delta: int, reason: str) -> None:
        """Add ``delta`` units (negative to remove). Never goes below zero."""
        new_stock = self.stock + delta
        if new_stock < 0:
            raise InsufficientStockError([{"product_id": self.id, "requested": -delta, "available": self.stock}])
        self._change_stock(new_stock, reason)

    def _change_stock(self, new_stock: int, reason: str) -> None:
        from catalog.product.events import ProductStockChanged

        if new_stock == self.stock:
            return
        previous = self.stock
        self.stock = new_stock
        self.updated_at = utcnow()
        self.raise_(
            ProductStockChanged(
                product_id=self.id,
                previous_stock=previous,
                new_stock=new_stock,
                reason=reason,
            )
        )

    def soft_delete(self) -> None:
        from catalog.product.events import ProductDeleted

        self._ensure_active()
        self.deleted_at = utcnow()
        self.raise_(ProductDeleted(product_id=self.id, deleted_at=self.deleted_at))

    def restore(self) -> None:
        from catalog.product.events import ProductRestored

        if not self.is_deleted:
            raise InvalidOperationError("Product is not deleted")
        self.deleted_at = None
        self.updated_at = utcnow()
        self.raise_(ProductRestored(product_id=self.id))

    def _ensure_active(self) -> None:
        if self.is_deleted:
            raise InvalidOperationError("Product has been deleted")

    def to_response(self) -> dict:
        return serialize_product(self)


@storefront.database_model(part_of=Product)
class ProductModel:
    __table_args__ = (
        CheckConstraint("stock >= 0", name="stock_non_negative"),
        CheckConstraint("price > 0", name="price_positive"),
    )
