"""Product search index — a denormalised, searchable mirror of active products."""

import re

import structlog
from protean.core.projector import on
from protean.fields import Boolean, DateTime, Decimal, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from sqlalchemy import case, delete, select

from catalog.product.events import (
    ProductCreated,
    ProductDeleted,
    ProductRestored,
    ProductStockChanged,
    ProductUpdated,
)
from catalog.product.product import Product
from catalog.product.repository import apply_filters, apply_sort
from shared.db import model_for, session_for, utcnow
from shared.pagination import Page, paginate
from storefront.domain import storefront

logger = structlog.get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


@storefront.projection
class ProductSearchDocument:
    product_id: Identifier(identifier=True, required=True)
    name: String(required=True, max_length=255)
    description: Text()
    price: Decimal(required=True, precision=10, scale=2)
    stock: Integer(default=0)
    in_stock: Boolean(default=False)
    content: Text()
    created_at: DateTime()
    indexed_at: DateTime(default=utcnow)


def build_content(name: str, description: str | None) -> str:
    return f"{name} {description or ''}".strip().lower()


def clean_query(query: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    return " ".join(_TAG_RE.sub("", query).split())


def _upsert(product_id, name: str, description, price, stock: int, created_at=None) -> None:
    repo = current_domain.repository_for(ProductSearchDocument)
    document = repo.get_or_none(product_id)
    if document is None:
        document = ProductSearchDocument(product_id=product_id, name=name, price=price, created_at=created_at or utcnow())
    document.name = name
    document.description = description
    document.price = price
    document.stock = stock
    document.in_stock = stock > 0
    document.content = build_content(name, description)
    document.indexed_at = utcnow()
    repo.add(document)


@storefront.projector(projector_for=ProductSearchDocument, aggregates=[Product])
class ProductSearchProjector:
    @on(ProductCreated)
    def on_product_created(self, event: ProductCreated):
        _upsert(event.product_id, event.name, event.description, event.price, event.stock, event.created_at)

    @on(ProductUpdated)
    def on_product_updated(self, event: ProductUpdated):
        _upsert(event.product_id, event.name, event.description, event.price, event.stock)

    @on(ProductStockChanged)
    def on_stock_changed(self, event: ProductStockChanged):
        repo = current_domain.repository_for(ProductSearchDocument)
        document = repo.get_or_none(event.product_id)
        if document is None:
            return
        document.stock = event.new_stock
        document.in_stock = event.new_stock > 0
        document.indexed_at = utcnow()
        repo.add(document)

    @on(ProductDeleted)
    def on_product_deleted(self, event: ProductDeleted):
        current_domain.repository_for(ProductSearchDocument).query.filter(product_id=event.product_id).delete()

    @on(ProductRestored)
    def on_product_restored(self, event: ProductRestored):
        product = current_domain.repository_for(Product).get(event.product_id)
        _upsert(product.id, product.name, product.description, product.price, product.stock, product.created_at)


def search(query: str, filters: dict, page: int = 1, per_page: int | None = None) -> Page:
    """Match every term of ``query`` against indexed content. Name matches rank first
    unless an explicit ``sort_by`` is given."""
    document = model_for(ProductSearchDocument)
    cleaned = clean_query(query)
    stmt = select(document)
    for term in cleaned.lower().split():
        stmt = stmt.where(document.content.contains(term, autoescape=True))
    stmt = apply_filters(stmt, document, filters)

    if filters.get("sort_by"):
        stmt = apply_sort(stmt, document, filters["sort_by"], filters.get("sort_direction"), document.product_id)
    else:
        name_match = case((document.name.icontains(cleaned, autoescape=True), 0), else_=1)
        stmt = stmt.order_by(name_match, document.name, document.product_id)

    with session_for(ProductSearchDocument) as session:
        return paginate(session, stmt, page, per_page)


def document_to_dict(document) -> dict:
    return {
        "id": document.product_id,
        "name": document.name,
        "description": document.description,
        "price": float(document.price),
        "stock": document.stock,
        "in_stock": document.in_stock,
    }


def reindex() -> int:
    """Rebuild the whole index from the products table. Returns the number of documents."""
    with session_for(ProductSearchDocument) as session:
        session.execute(delete(model_for(ProductSearchDocument)))
    products = current_domain.repository_for(Product).all_active()
    for product in products:
        _upsert(product.id, product.name, product.description, product.price, product.stock, product.created_at)
    logger.info("Product search index rebuilt", documents=len(products))
    return len(products)
