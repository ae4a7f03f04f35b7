"""Keep cached catalog reads consistent with product writes."""

import structlog
from protean import handle

from catalog.product.events import (
    ProductCreated,
    ProductDeleted,
    ProductRestored,
    ProductStockChanged,
    ProductUpdated,
)
from catalog.product.product import Product
from shared.cache import get_cache
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


def _clear(event) -> None:
    removed = get_cache().clear_by_tags(["products", "search"])
    logger.debug("Product caches cleared", event_type=type(event).__name__, keys_removed=removed)


@storefront.event_handler(part_of=Product)
class ProductCacheInvalidator:
    @handle(ProductCreated)
    def on_created(self, event: ProductCreated):
        _clear(event)

    @handle(ProductUpdated)
    def on_updated(self, event: ProductUpdated):
        _clear(event)

    @handle(ProductStockChanged)
    def on_stock_changed(self, event: ProductStockChanged):
        _clear(event)

    @handle(ProductDeleted)
    def on_deleted(self, event: ProductDeleted):
        _clear(event)

    @handle(ProductRestored)
    def on_restored(self, event: ProductRestored):
        _clear(event)
