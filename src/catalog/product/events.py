"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, List, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalog."""

    __version__ = 1

    product_id: Identifier(required=True)
    name: String(required=True, max_length=255)
    description: Text()
    price: Float(required=True)
    stock: Integer(required=True)
    created_at: DateTime(required=True)


@storefront.event(part_of="Product")
class ProductUpdated:
    """Name, description, price or stock changed through an edit."""

    __version__ = 1

    product_id: Identifier(required=True)
    name: String(required=True, max_length=255)
    description: Text()
    price: Float(required=True)
    stock: Integer(required=True)
    changed_fields: List(content_type=String)


@storefront.event(part_of="Product")
class ProductStockChanged:
    """Available quantity changed: order placement, cancellation or an admin adjustment."""

    __version__ = 1

    product_id: Identifier(required=True)
    previous_stock: Integer(required=True)
    new_stock: Integer(required=True)
    reason: String(max_length=255)


@storefront.event(part_of="Product")
class ProductDeleted:
    __version__ = 1

    product_id: Identifier(required=True)
    deleted_at: DateTime(required=True)


@storefront.event(part_of="Product")
class ProductRestored:
    __version__ = 1

    product_id: Identifier(required=True)
