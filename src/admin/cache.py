"""Cache maintenance for administrators."""

import structlog

from catalog.product import queries as product_queries
from shared import config
from shared.cache import get_cache

logger = structlog.get_logger(__name__)


def clear_tags(tags: list[str]) -> int:
    return get_cache().clear_by_tags(tags)


def clear_all() -> int:
    return get_cache().flush()


def warm_up() -> dict:
    """Prime the most requested catalog reads and return cache statistics."""
    product_queries.list_products({}, page=1, per_page=config.DEFAULT_PER_PAGE)
    product_queries.in_stock_products()
    product_queries.out_of_stock_products()
    product_queries.low_stock_products()
    product_queries.popular_products()
    product_queries.product_statistics()

    stats = get_cache().statistics()
    logger.info("Cache warmed up", **stats)
    return stats
