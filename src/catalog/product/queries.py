"""Cached catalog reads.

Results are plain dicts so they can be stored in the cache as JSON and
returned as-is on a hit.
"""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from catalog.product.product import Product, serialize_product
from catalog.projections import product_search
from shared import cache

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 255


def _repository():
    return current_domain.repository_for(Product)


def _page_payload(page, serializer) -> dict:
    return {"items": [serializer(item) for item in page.items], "pagination": page.meta()}


def list_products(filters: dict, page: int = 1, per_page: int | None = None) -> dict:
    key = cache.make_key("products", {**filters, "page": page, "per_page": per_page, "view": "list"})

    def load():
        return _page_payload(_repository().find(filters, page, per_page), serialize_product)

    return cache.remember("products", key, load)


def search_products(query: str, filters: dict, page: int = 1, per_page: int | None = None) -> dict:
    cleaned = product_search.clean_query(query or "")
    if not (MIN_QUERY_LENGTH <= len(cleaned) <= MAX_QUERY_LENGTH):
        raise ValidationError(
            {"q": [f"Search query must be between {MIN_QUERY_LENGTH} and {MAX_QUERY_LENGTH} characters"]}
        )

    key = cache.make_key("search", {**filters, "q": cleaned.lower(), "page": page, "per_page": per_page})

    def load():
        result = product_search.search(cleaned, filters, page, per_page)
        return _page_payload(result, product_search.document_to_dict)

    return cache.remember("search", key, load, extra_tags=["products"])


def get_product(product_id: str) -> dict:
    key = cache.make_key("products", {"id": product_id, "view": "detail"})

    def load():
        return _repository().get_active(product_id).to_response()

    return cache.remember("products", key, load)


def _cached_list(view: str, loader, extra_tags: list[str] | None = None, **params):
    key = cache.make_key("products", {**params, "view": view})
    return cache.remember("products", key, lambda: loader(_repository()), extra_tags=extra_tags)


def in_stock_products() -> list[dict]:
    return _cached_list("in_stock", lambda repo: [serialize_product(p) for p in repo.in_stock()])


def out_of_stock_products() -> list[dict]:
    return _cached_list("out_of_stock", lambda repo: [serialize_product(p) for p in repo.out_of_stock()])


def low_stock_products(threshold: int | None = None) -> list[dict]:
    return _cached_list(
        "low_stock", lambda repo: [serialize_product(p) for p in repo.low_stock(threshold)], threshold=threshold
    )


def popular_products(limit: int = 10) -> list[dict]:
    return _cached_list(
        "popular",
        lambda repo: [{**serialize_product(p), "orders_count": count} for p, count in repo.popular(limit)],
        extra_tags=["orders"],
        limit=limit,
    )


def recently_added_products(days: int = 7, limit: int = 10) -> list[dict]:
    return _cached_list(
        "recently_added",
        lambda repo: [serialize_product(p) for p in repo.recently_added(days, limit)],
        days=days,
        limit=limit,
    )


def products_by_price_range(min_price: float, max_price: float) -> list[dict]:
    if min_price > max_price:
        raise ValidationError({"max_price": ["Maximum price must be greater than or equal to minimum price"]})
    return _cached_list(
        "price_range",
        lambda repo: [serialize_product(p) for p in repo.by_price_range(min_price, max_price)],
        min_price=min_price,
        max_price=max_price,
    )


def product_statistics() -> dict:
    return _cached_list("statistics", lambda repo: repo.statistics())
