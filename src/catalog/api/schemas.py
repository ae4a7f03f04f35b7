"""Pydantic request schemas for the Catalog API.

These are the external contracts. They map onto the commands in
``catalog.product.management``.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from catalog.product.product import MAX_STOCK


class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(gt=0, le=Decimal("99999999.99"), decimal_places=2)
    stock: int = Field(default=0, ge=0, le=MAX_STOCK)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Mechanical Keyboard",
                    "description": "Tenkeyless, brown switches",
                    "price": "89.90",
                    "stock": 25,
                }
            ]
        }
    }


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, gt=0, le=Decimal("99999999.99"), decimal_places=2)
    stock: int | None = Field(default=None, ge=0, le=MAX_STOCK)


class UpdateStockRequest(BaseModel):
    stock: int = Field(ge=0, le=MAX_STOCK)
    reason: str = Field(default="Manual stock adjustment", max_length=255)


class BulkUpdateItemRequest(BaseModel):
    id: str = Field(min_length=1, max_length=255)
    stock: int | None = Field(default=None, ge=0, le=MAX_STOCK)
    price: Decimal | None = Field(default=None, gt=0, le=Decimal("99999999.99"), decimal_places=2)


class BulkUpdateRequest(BaseModel):
    products: list[BulkUpdateItemRequest] = Field(min_length=1, max_length=100)


class ProductFilters(BaseModel):
    """Query-string filters shared by listing and search."""

    name: str | None = Field(default=None, max_length=255)
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    min_stock: int | None = Field(default=None, ge=0)
    max_stock: int | None = Field(default=None, ge=0)
    in_stock: bool | None = None
    sort_by: Literal["name", "price", "stock", "created_at"] | None = None
    sort_direction: Literal["asc", "desc"] = "desc"

    @field_validator("name")
    @classmethod
    def strip_name(cls, value):
        return value.strip() or None if value is not None else None


class ProductListQuery(ProductFilters):
    """Everything ``GET /products`` reads from the query string."""

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=15, ge=1, le=100)

    def filters(self) -> dict:
        return self.model_dump(exclude={"page", "per_page", "q"})


class ProductSearchQuery(ProductListQuery):
    q: str = Field(max_length=255)
