"""Product repository.

Writes go through the standard repository. The read helpers below run SQL
over the product table and exclude soft-deleted products; only
``get_active`` can opt in with ``with_deleted``.
"""

from datetime import timedelta

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from sqlalchemy import Select, asc, case, desc, func, select

from catalog.product.product import Product
from shared import config
from shared.db import model_for, session_for, utcnow
from shared.pagination import Page, paginate
from storefront.domain import storefront

SORTABLE_FIELDS = ("name", "price", "stock", "created_at")


def apply_filters(stmt: Select, model, filters: dict) -> Select:
    """Apply the shared listing filters to ``stmt`` over ``model`` (a product or search document)."""
    if filters.get("name"):
        stmt = stmt.where(model.name.icontains(filters["name"], autoescape=True))
    if filters.get("min_price") is not None:
        stmt = stmt.where(model.price >= filters["min_price"])
    if filters.get("max_price") is not None:
        stmt = stmt.where(model.price <= filters["max_price"])
    if filters.get("min_stock") is not None:
        stmt = stmt.where(model.stock >= filters["min_stock"])
    if filters.get("max_stock") is not None:
        stmt = stmt.where(model.stock <= filters["max_stock"])
    if filters.get("in_stock") is True:
        stmt = stmt.where(model.stock > 0)
    elif filters.get("in_stock") is False:
        stmt = stmt.where(model.stock == 0)
    return stmt


def apply_sort(stmt: Select, model, sort_by: str | None, direction: str | None, tiebreak) -> Select:
    column = getattr(model, sort_by if sort_by in SORTABLE_FIELDS else "created_at")
    order = asc if (direction or "desc").lower() == "asc" else desc
    return stmt.order_by(order(column), order(tiebreak))


def get_product(product_id, with_deleted: bool = False) -> Product:
    return current_domain.repository_for(Product).get_active(product_id, with_deleted=with_deleted)


@storefront.repository(part_of=Product)
class ProductRepository:
    def get_active(self, product_id, with_deleted: bool = False) -> Product:
        product = self.get_or_none(str(product_id))
        if product is None or (product.is_deleted and not with_deleted):
            raise ObjectNotFoundError(f"Product with id {product_id} not found")
        return product

    def _active(self) -> Select:
        model = model_for(Product)
        return select(model).where(model.deleted_at.is_(None))

    def _rows(self, stmt: Select) -> list:
        with session_for(Product) as session:
            return list(session.scalars(stmt))

    def find(self, filters: dict, page: int = 1, per_page: int | None = None) -> Page:
        model = model_for(Product)
        stmt = apply_filters(self._active(), model, filters)
        stmt = apply_sort(stmt, model, filters.get("sort_by"), filters.get("sort_direction"), model.id)
        with session_for(Product) as session:
            return paginate(session, stmt, page, per_page)

    def in_stock(self) -> list:
        model = model_for(Product)
        return self._rows(self._active().where(model.stock > 0).order_by(model.name, model.id))

    def out_of_stock(self) -> list:
        model = model_for(Product)
        return self._rows(self._active().where(model.stock == 0).order_by(model.name, model.id))

    def low_stock(self, threshold: int | None = None) -> list:
        threshold = config.LOW_STOCK_THRESHOLD if threshold is None else threshold
        model = model_for(Product)
        stmt = self._active().where(model.stock > 0, model.stock <= threshold).order_by(model.stock, model.id)
        return self._rows(stmt)

    def by_price_range(self, min_price, max_price) -> list:
        model = model_for(Product)
        stmt = self._active().where(model.price.between(min_price, max_price)).order_by(model.price, model.id)
        return self._rows(stmt)

    def recently_added(self, days: int = 7, limit: int = 10) -> list:
        model = model_for(Product)
        since = utcnow() - timedelta(days=days)
        stmt = (
            self._active()
            .where(model.created_at >= since)
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(limit)
        )
        return self._rows(stmt)

    def popular(self, limit: int = 10) -> list[tuple]:
        """Products ranked by the number of order lines referencing them."""
        from ordering.order.order import OrderItem

        model = model_for(Product)
        item = model_for(OrderItem)
        line_count = func.count(item.id).label("orders_count")
        stmt = (
            select(model, line_count)
            .outerjoin(item, item.product_id == model.id)
            .where(model.deleted_at.is_(None))
            .group_by(model.id)
            .order_by(line_count.desc(), model.id)
            .limit(limit)
        )
        with session_for(Product) as session:
            return [(product, count) for product, count in session.execute(stmt)]

    def statistics(self, low_stock_threshold: int | None = None) -> dict:
        threshold = config.LOW_STOCK_THRESHOLD if low_stock_threshold is None else low_stock_threshold
        model = model_for(Product)
        stmt = select(
            func.count(model.id),
            func.sum(case((model.stock > 0, 1), else_=0)),
            func.sum(case((model.stock == 0, 1), else_=0)),
            func.sum(case(((model.stock > 0) & (model.stock <= threshold), 1), else_=0)),
            func.avg(model.price),
            func.max(model.price),
            func.min(model.price),
            func.sum(model.stock),
            func.sum(model.price * model.stock),
        ).where(model.deleted_at.is_(None))
        with session_for(Product) as session:
            row = session.execute(stmt).one()

        total, in_stock, out_of_stock, low_stock, avg_price, max_price, min_price, stock_qty, stock_value = row
        return {
            "total_products": total or 0,
            "in_stock_products": int(in_stock or 0),
            "out_of_stock_products": int(out_of_stock or 0),
            "low_stock_products": int(low_stock or 0),
            "average_price": round(float(avg_price), 2) if avg_price is not None else 0.0,
            "highest_price": float(max_price) if max_price is not None else 0.0,
            "lowest_price": float(min_price) if min_price is not None else 0.0,
            "total_stock_quantity": int(stock_qty or 0),
            "total_stock_value": round(float(stock_value or 0), 2),
        }

    def all_active(self) -> list:
        model = model_for(Product)
        return self._rows(self._active().order_by(model.id))
