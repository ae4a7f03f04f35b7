"""Pydantic request/response schemas for the Ordering API.

These are external contracts, kept separate from the commands in
``ordering.order``.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ordering.order.order import MAX_LINES, MAX_NOTES_LENGTH, MAX_QUANTITY, OrderStatus

_NOTES_PATTERN = r"^[\w\s\-\.,!?]+$"


class OrderItemSchema(BaseModel):
    product_id: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1, le=MAX_QUANTITY)


class CreateOrderRequest(BaseModel):
    products: list[OrderItemSchema] = Field(min_length=1, max_length=MAX_LINES)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH, pattern=_NOTES_PATTERN)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "products": [
                        {"product_id": "5b0c6c52-9d1e-4c1a-8f0e-2f6b1d9a7e11", "quantity": 2},
                        {"product_id": "a3f4e2d1-7c6b-4e5a-9b8c-1d2e3f4a5b6c", "quantity": 1},
                    ],
                    "notes": "Leave at the front desk",
                }
            ]
        }
    }

    @field_validator("products")
    @classmethod
    def products_must_be_distinct(cls, value):
        ids = [item.product_id for item in value]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate products are not allowed")
        return value


class UpdateOrderRequest(BaseModel):
    status: OrderStatus
    products: list[OrderItemSchema] | None = Field(default=None, min_length=1, max_length=MAX_LINES)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH, pattern=_NOTES_PATTERN)
    reason: str | None = Field(default=None, max_length=500)

    @field_validator("products")
    @classmethod
    def products_must_be_distinct(cls, value):
        if value is None:
            return value
        ids = [item.product_id for item in value]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate products are not allowed")
        return value


class UpdateStatusRequest(BaseModel):
    status: OrderStatus
    reason: str | None = Field(default=None, max_length=500)


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class AdminOrderFilters(BaseModel):
    model_config = {"use_enum_values": True}

    user_id: str | None = Field(default=None, max_length=255)
    status: OrderStatus | None = None
    min_amount: float | None = Field(default=None, ge=0)
    max_amount: float | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    sort_by: Literal["total_amount", "status", "created_at"] = "created_at"
    sort_direction: Literal["asc", "desc"] = "desc"


class AdminOrderQuery(AdminOrderFilters):
    """Query string of ``GET /admin/orders``: the filters plus pagination."""

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=15, ge=1, le=100)

    def filters(self) -> dict:
        return self.model_dump(exclude={"page", "per_page"})
