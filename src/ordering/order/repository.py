"""Order repository and reporting queries.

Orders are loaded and saved through the standard repository API. Listing
and reporting queries run SQL over the order tables and hydrate the
matching aggregates by id.
"""

from dataclasses import replace
from datetime import date, datetime, time, timedelta

from protean.exceptions import ObjectNotFoundError
from sqlalchemy import Select, asc, case, desc, extract, func, select

from identity.user import User
from ordering.order.order import Order, OrderStatus
from shared.db import model_for, session_for, utcnow
from shared.pagination import Page, paginate
from storefront.domain import storefront

SORTABLE_FIELDS = ("total_amount", "status", "created_at")


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _end_of(day: date) -> datetime:
    return datetime.combine(day + timedelta(days=1), time.min)


def _money(value) -> float:
    return round(float(value), 2) if value is not None else 0.0


@storefront.repository(part_of=Order)
class OrderRepository:
    def get_order(self, order_id) -> Order:
        order = self.get_or_none(str(order_id))
        if order is None:
            raise ObjectNotFoundError(f"Order with id {order_id} not found")
        return order

    def _orders(self) -> Select:
        return select(model_for(Order))

    def _hydrate(self, rows) -> list[Order]:
        return [self.get(row.id) for row in rows]

    def _all(self, stmt: Select) -> list[Order]:
        with session_for(Order) as session:
            rows = list(session.scalars(stmt))
        return self._hydrate(rows)

    def _page(self, stmt: Select, page: int, per_page: int | None) -> Page:
        with session_for(Order) as session:
            result = paginate(session, stmt, page, per_page)
        return replace(result, items=self._hydrate(result.items))

    # -------------------------------------------------------------------
    # Customer views
    # -------------------------------------------------------------------
    def for_user(self, user_id, page: int = 1, per_page: int | None = None) -> Page:
        model = model_for(Order)
        stmt = self._orders().where(model.user_id == user_id).order_by(model.created_at.desc(), model.id.desc())
        return self._page(stmt, page, per_page)

    def for_user_by_status(self, user_id, status: OrderStatus) -> list[Order]:
        model = model_for(Order)
        stmt = (
            self._orders()
            .where(model.user_id == user_id, model.status == status.value)
            .order_by(model.created_at.desc(), model.id.desc())
        )
        return self._all(stmt)

    def statistics(self, user_id=None) -> dict:
        model = model_for(Order)
        completed = model.status == OrderStatus.COMPLETED.value
        stmt = select(
            func.count(model.id),
            *(func.sum(case((model.status == s.value, 1), else_=0)) for s in OrderStatus),
            func.sum(case((completed, model.total_amount), else_=0)),
            func.avg(model.total_amount),
            func.max(model.total_amount),
            func.min(model.total_amount),
        )
        if user_id is not None:
            stmt = stmt.where(model.user_id == user_id)

        with session_for(Order) as session:
            row = session.execute(stmt).one()

        total, pending, processing, completed_count, cancelled, revenue, avg_value, max_value, min_value = row
        return {
            "total_orders": total or 0,
            "pending_orders": int(pending or 0),
            "processing_orders": int(processing or 0),
            "completed_orders": int(completed_count or 0),
            "cancelled_orders": int(cancelled or 0),
            "total_revenue": _money(revenue),
            "average_order_value": _money(avg_value),
            "highest_order_value": _money(max_value),
            "lowest_order_value": _money(min_value),
        }

    def monthly_statistics(self, year: int, user_id=None) -> list[dict]:
        model = model_for(Order)
        month = extract("month", model.created_at).label("month")
        stmt = (
            select(month, func.count(model.id), func.sum(model.total_amount))
            .where(model.created_at >= datetime(year, 1, 1), model.created_at < datetime(year + 1, 1, 1))
            .group_by(month)
            .order_by(month)
        )
        if user_id is not None:
            stmt = stmt.where(model.user_id == user_id)

        with session_for(Order) as session:
            rows = session.execute(stmt).all()
        return [{"month": int(m), "total_orders": count, "total_revenue": _money(revenue)} for m, count, revenue in rows]

    # -------------------------------------------------------------------
    # Admin views
    # -------------------------------------------------------------------
    def find(self, filters: dict, page: int = 1, per_page: int | None = None) -> Page:
        model = model_for(Order)
        stmt = self._orders()
        if filters.get("user_id"):
            stmt = stmt.where(model.user_id == str(filters["user_id"]))
        if filters.get("status"):
            stmt = stmt.where(model.status == filters["status"])
        if filters.get("min_amount") is not None:
            stmt = stmt.where(model.total_amount >= filters["min_amount"])
        if filters.get("max_amount") is not None:
            stmt = stmt.where(model.total_amount <= filters["max_amount"])
        if filters.get("start_date"):
            stmt = stmt.where(model.created_at >= _start_of(filters["start_date"]))
        if filters.get("end_date"):
            stmt = stmt.where(model.created_at < _end_of(filters["end_date"]))

        sort_by = filters.get("sort_by") if filters.get("sort_by") in SORTABLE_FIELDS else "created_at"
        order = asc if (filters.get("sort_direction") or "desc") == "asc" else desc
        stmt = stmt.order_by(order(getattr(model, sort_by)), order(model.id))
        return self._page(stmt, page, per_page)

    def by_date_range(self, start: date, end: date) -> list[Order]:
        model = model_for(Order)
        stmt = (
            self._orders()
            .where(model.created_at >= _start_of(start), model.created_at < _end_of(end))
            .order_by(model.created_at.desc(), model.id.desc())
        )
        return self._all(stmt)

    def by_amount_range(self, min_amount: float, max_amount: float) -> list[Order]:
        model = model_for(Order)
        stmt = (
            self._orders()
            .where(model.total_amount.between(min_amount, max_amount))
            .order_by(model.total_amount.desc(), model.id)
        )
        return self._all(stmt)

    def recent(self, days: int = 7) -> list[Order]:
        model = model_for(Order)
        since = utcnow() - timedelta(days=days)
        stmt = self._orders().where(model.created_at >= since).order_by(model.created_at.desc(), model.id.desc())
        return self._all(stmt)

    def total_revenue(self, start: date | None = None, end: date | None = None) -> float:
        model = model_for(Order)
        stmt = select(func.sum(model.total_amount)).where(model.status == OrderStatus.COMPLETED.value)
        if start is not None:
            stmt = stmt.where(model.created_at >= _start_of(start))
        if end is not None:
            stmt = stmt.where(model.created_at < _end_of(end))
        with session_for(Order) as session:
            return _money(session.scalar(stmt))

    def top_customers(self, limit: int = 10) -> list[dict]:
        model = model_for(Order)
        user = model_for(User)
        total_spent = func.sum(model.total_amount).label("total_spent")
        stmt = (
            select(user.id, user.name, user.email, func.count(model.id), total_spent)
            .join(model, model.user_id == user.id)
            .group_by(user.id, user.name, user.email)
            .order_by(total_spent.desc(), user.id)
            .limit(limit)
        )
        with session_for(Order) as session:
            rows = session.execute(stmt).all()
        return [
            {
                "user_id": user_id,
                "name": name,
                "email": email,
                "orders_count": count,
                "total_spent": _money(spent),
            }
            for user_id, name, email, count, spent in rows
        ]
