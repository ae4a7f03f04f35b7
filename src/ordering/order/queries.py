"""Order reads. Customer-facing views are cached per user under the ``orders`` tag."""

from datetime import date

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.order.order import Order, OrderStatus
from shared import cache


def _repository():
    return current_domain.repository_for(Order)


def _serialize(orders) -> list[dict]:
    return [order.to_response() for order in orders]


def my_orders(user_id, page: int = 1, per_page: int | None = None) -> dict:
    key = cache.make_key("orders", {"view": "list", "page": page, "per_page": per_page}, user_id=user_id)

    def load():
        result = _repository().for_user(user_id, page, per_page)
        return {"items": _serialize(result.items), "pagination": result.meta()}

    return cache.remember("orders", key, load)


def my_orders_by_status(user_id, status: OrderStatus) -> list[dict]:
    key = cache.make_key("orders", {"view": "by_status", "status": status.value}, user_id=user_id)
    return cache.remember("orders", key, lambda: _serialize(_repository().for_user_by_status(user_id, status)))


def my_statistics(user_id) -> dict:
    key = cache.make_key("orders", {"view": "statistics"}, user_id=user_id)
    return cache.remember("orders", key, lambda: _repository().statistics(user_id))


def my_monthly_statistics(user_id, year: int) -> list[dict]:
    key = cache.make_key("orders", {"view": "monthly", "year": year}, user_id=user_id)
    return cache.remember("orders", key, lambda: _repository().monthly_statistics(year, user_id))


# Admin reads go straight to the database.


def _check_range(low, high, field: str) -> None:
    if low is not None and high is not None and low > high:
        raise ValidationError({field: [f"{field} must be after or equal to its lower bound"]})


def all_orders(filters: dict, page: int = 1, per_page: int | None = None) -> dict:
    _check_range(filters.get("start_date"), filters.get("end_date"), "end_date")
    _check_range(filters.get("min_amount"), filters.get("max_amount"), "max_amount")
    result = _repository().find(filters, page, per_page)
    return {"items": _serialize(result.items), "pagination": result.meta()}


def orders_by_date_range(start: date, end: date) -> list[dict]:
    _check_range(start, end, "end_date")
    return _serialize(_repository().by_date_range(start, end))


def orders_by_amount_range(min_amount: float, max_amount: float) -> list[dict]:
    _check_range(min_amount, max_amount, "max_amount")
    return _serialize(_repository().by_amount_range(min_amount, max_amount))


def recent_orders(days: int = 7) -> list[dict]:
    return _serialize(_repository().recent(days))


def total_revenue(start: date | None = None, end: date | None = None) -> dict:
    _check_range(start, end, "end_date")
    return {"total_revenue": _repository().total_revenue(start, end), "start_date": start, "end_date": end}


def global_statistics() -> dict:
    return _repository().statistics()


def top_customers(limit: int = 10) -> list[dict]:
    return _repository().top_customers(limit)
