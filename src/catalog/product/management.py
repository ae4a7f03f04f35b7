"""Product management — admin commands and their handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Decimal, Dict, Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from catalog.product.product import Product
from catalog.product.repository import get_product
from storefront.domain import storefront

logger = structlog.get_logger(__name__)

MAX_BULK_ITEMS = 100


@storefront.command(part_of="Product")
class CreateProduct:
    name: String(required=True, max_length=255)
    description: Text()
    price: Decimal(required=True)
    stock: Integer(default=0)


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id: Identifier(required=True)
    name: String(max_length=255)
    description: Text()
    price: Decimal()
    stock: Integer()


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class RestoreProduct:
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class UpdateStock:
    product_id: Identifier(required=True)
    stock: Integer(required=True)
    reason: String(max_length=255, default="Manual stock adjustment")


@storefront.command(part_of="Product")
class BulkUpdateProducts:
    """``products`` holds ``{"id", "stock", "price"}`` items; stock and price are optional."""

    products: List(content_type=Dict)


def _validate_bulk(items: list[dict]) -> list[str]:
    if not items:
        raise ValidationError({"products": ["At least one product is required"]})
    if len(items) > MAX_BULK_ITEMS:
        raise ValidationError({"products": [f"Cannot update more than {MAX_BULK_ITEMS} products at once"]})
    ids = [str(item["id"]) for item in items]
    if len(set(ids)) != len(ids):
        raise ValidationError({"products": ["Duplicate products are not allowed"]})
    return ids


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command: CreateProduct) -> dict:
        product = Product.create(
            name=command.name,
            description=command.description,
            price=command.price,
            stock=command.stock,
        )
        current_domain.repository_for(Product).add(product)

        logger.info("Product created", product_id=product.id, name=product.name)
        return product.to_response()

    @handle(UpdateProduct)
    def update_product(self, command: UpdateProduct) -> dict:
        product = get_product(command.product_id)
        changed = product.update(
            name=command.name,
            description=command.description,
            price=command.price,
            stock=command.stock,
        )
        current_domain.repository_for(Product).add(product)

        logger.info("Product updated", product_id=product.id, changed_fields=changed)
        return product.to_response()

    @handle(DeleteProduct)
    def delete_product(self, command: DeleteProduct) -> None:
        product = get_product(command.product_id)
        product.soft_delete()
        current_domain.repository_for(Product).add(product)

        logger.info("Product deleted", product_id=product.id)

    @handle(RestoreProduct)
    def restore_product(self, command: RestoreProduct) -> dict:
        product = get_product(command.product_id, with_deleted=True)
        product.restore()
        current_domain.repository_for(Product).add(product)

        logger.info("Product restored", product_id=product.id)
        return product.to_response()

    @handle(UpdateStock)
    def update_stock(self, command: UpdateStock) -> dict:
        product = get_product(command.product_id)
        previous = product.stock
        product.set_stock(command.stock, command.reason)
        current_domain.repository_for(Product).add(product)

        logger.info(
            "Product stock updated",
            product_id=product.id,
            previous_stock=previous,
            new_stock=product.stock,
            reason=command.reason,
        )
        return product.to_response()

    @handle(BulkUpdateProducts)
    def bulk_update(self, command: BulkUpdateProducts) -> list[dict]:
        """Update stock and/or price of many products in one unit of work.

        Any invalid item rolls back the whole batch.
        """
        items = command.products or []
        ids = _validate_bulk(items)

        repo = current_domain.repository_for(Product)
        products = {}
        for pid in ids:
            product = repo.get_or_none(pid)
            if product is not None and not product.is_deleted:
                products[pid] = product
        missing = [pid for pid in ids if pid not in products]
        if missing:
            raise ValidationError({"products": [f"Product with id {pid} not found" for pid in missing]})

        for item in items:
            product = products[str(item["id"])]
            if item.get("price") is not None:
                product.update(price=item["price"])
            if item.get("stock") is not None:
                product.set_stock(int(item["stock"]), "Bulk update")
            repo.add(product)

        logger.info("Products bulk updated", count=len(items), product_ids=ids)
        return [products[pid].to_response() for pid in ids]
