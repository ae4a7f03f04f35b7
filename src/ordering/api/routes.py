"""FastAPI routes for Ordering: customer orders and admin reporting."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from identity.dependencies import current_user, rate_limited, require_admin
from identity.user import User
from ordering.api.schemas import (
    AdminOrderQuery,
    CancelOrderRequest,
    CreateOrderRequest,
    UpdateOrderRequest,
    UpdateStatusRequest,
)
from ordering.order import lifecycle, queries
from ordering.order.lifecycle import CancelOrder, CompleteOrder, DeleteOrder, UpdateOrder, UpdateOrderStatus
from ordering.order.order import OrderStatus
from ordering.order.placement import PlaceOrder
from shared import responses
from shared.db import utcnow

# ---------------------------------------------------------------------------
# Customer: own orders
# ---------------------------------------------------------------------------
my_orders_router = APIRouter(
    prefix="/my-orders",
    tags=["my-orders"],
    dependencies=[Depends(rate_limited("authenticated"))],
)


@my_orders_router.get("")
def my_orders(
    user: User = Depends(current_user),
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
):
    result = queries.my_orders(user.id, page, per_page)
    return responses.paginated(result["items"], result["pagination"], "Orders retrieved successfully")


@my_orders_router.get("/by-status")
def my_orders_by_status(status: OrderStatus, user: User = Depends(current_user)):
    return responses.success(queries.my_orders_by_status(user.id, status), "Orders retrieved successfully")


@my_orders_router.get("/statistics")
def my_statistics(user: User = Depends(current_user)):
    return responses.success(queries.my_statistics(user.id), "Order statistics retrieved successfully")


@my_orders_router.get("/monthly-statistics")
def my_monthly_statistics(year: int | None = Query(None, ge=2000, le=2100), user: User = Depends(current_user)):
    year = year or utcnow().year
    return responses.success(
        queries.my_monthly_statistics(user.id, year), "Monthly statistics retrieved successfully"
    )


# ---------------------------------------------------------------------------
# Customer: order commands
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])

_write_limit = [Depends(rate_limited("write_operations"))]


def _lines(items) -> list[dict]:
    return [{"product_id": item.product_id, "quantity": item.quantity} for item in items]


def _actor(user: User) -> dict:
    return {"actor_id": user.id, "actor_is_admin": user.is_admin}


@order_router.post("", status_code=201, dependencies=_write_limit)
def create_order(body: CreateOrderRequest, user: User = Depends(current_user)):
    command = PlaceOrder(user_id=user.id, products=_lines(body.products), notes=body.notes)
    order = current_domain.process(command, asynchronous=False)
    return responses.created(order, "Order created successfully")


@order_router.get("/{order_id}", dependencies=[Depends(rate_limited("authenticated"))])
def get_order(order_id: str, user: User = Depends(current_user)):
    order = lifecycle.get_order(order_id, user.id, user.is_admin)
    return responses.success(order.to_response(), "Order retrieved successfully")


@order_router.put("/{order_id}", dependencies=_write_limit)
def update_order(order_id: str, body: UpdateOrderRequest, user: User = Depends(current_user)):
    command = UpdateOrder(
        order_id=order_id,
        status=body.status.value,
        products=_lines(body.products) if body.products is not None else None,
        replace_products=body.products is not None,
        notes=body.notes,
        reason=body.reason,
        **_actor(user),
    )
    order = current_domain.process(command, asynchronous=False)
    return responses.success(order, "Order updated successfully")


@order_router.delete("/{order_id}", dependencies=_write_limit)
def delete_order(order_id: str, user: User = Depends(current_user)):
    current_domain.process(DeleteOrder(order_id=order_id, **_actor(user)), asynchronous=False)
    return responses.deleted("Order deleted successfully")


@order_router.put("/{order_id}/cancel", dependencies=_write_limit)
def cancel_order(order_id: str, body: CancelOrderRequest | None = None, user: User = Depends(current_user)):
    command = CancelOrder(order_id=order_id, reason=body.reason if body else None, **_actor(user))
    order = current_domain.process(command, asynchronous=False)
    return responses.success(order, "Order cancelled successfully")


@order_router.put("/{order_id}/complete", dependencies=_write_limit)
def complete_order(order_id: str, user: User = Depends(current_user)):
    order = current_domain.process(CompleteOrder(order_id=order_id, **_actor(user)), asynchronous=False)
    return responses.success(order, "Order completed successfully")


@order_router.put("/{order_id}/status", dependencies=_write_limit)
def update_status(order_id: str, body: UpdateStatusRequest, user: User = Depends(current_user)):
    command = UpdateOrderStatus(order_id=order_id, status=body.status.value, reason=body.reason, **_actor(user))
    order = current_domain.process(command, asynchronous=False)
    return responses.success(order, "Order status updated successfully")


# ---------------------------------------------------------------------------
# Admin reporting
# ---------------------------------------------------------------------------
admin_order_router = APIRouter(
    prefix="/admin/orders",
    tags=["admin-orders"],
    dependencies=[Depends(require_admin), Depends(rate_limited("admin_read"))],
)


@admin_order_router.get("")
def all_orders(params: Annotated[AdminOrderQuery, Query()]):
    result = queries.all_orders(params.filters(), params.page, params.per_page)
    return responses.paginated(result["items"], result["pagination"], "Orders retrieved successfully")


@admin_order_router.get("/by-date-range")
def orders_by_date_range(start_date: date, end_date: date):
    return responses.success(queries.orders_by_date_range(start_date, end_date), "Orders retrieved successfully")


@admin_order_router.get("/by-amount-range")
def orders_by_amount_range(min_amount: float = Query(..., ge=0), max_amount: float = Query(..., ge=0)):
    return responses.success(
        queries.orders_by_amount_range(min_amount, max_amount), "Orders retrieved successfully"
    )


@admin_order_router.get("/total-revenue")
def total_revenue(start_date: date | None = None, end_date: date | None = None):
    return responses.success(queries.total_revenue(start_date, end_date), "Total revenue retrieved successfully")


@admin_order_router.get("/statistics")
def statistics():
    return responses.success(queries.global_statistics(), "Order statistics retrieved successfully")


@admin_order_router.get("/recent")
def recent_orders(days: int = Query(7, ge=1, le=365)):
    return responses.success(queries.recent_orders(days), "Recent orders retrieved successfully")


@admin_order_router.get("/top-customers")
def top_customers(limit: int = Query(10, ge=1, le=100)):
    return responses.success(queries.top_customers(limit), "Top customers retrieved successfully")
