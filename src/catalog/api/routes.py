"""FastAPI endpoints for the Catalog: public browsing and admin management.

Static paths are declared before ``/{product_id}`` so they are not captured
by the id route.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from catalog.api.schemas import (
    BulkUpdateRequest,
    CreateProductRequest,
    ProductListQuery,
    ProductSearchQuery,
    UpdateProductRequest,
    UpdateStockRequest,
)
from catalog.product import queries
from catalog.product.management import (
    BulkUpdateProducts,
    CreateProduct,
    DeleteProduct,
    RestoreProduct,
    UpdateProduct,
    UpdateStock,
)
from identity.dependencies import rate_limited, require_admin
from shared import cache, responses

product_router = APIRouter(
    prefix="/products",
    tags=["products"],
)
admin_product_router = APIRouter(
    prefix="/admin/products",
    tags=["admin-products"],
    dependencies=[Depends(require_admin)],
)


# --- Public endpoints ---


@product_router.get("", dependencies=[Depends(rate_limited("public_browsing"))])
def list_products(params: Annotated[ProductListQuery, Query()]):
    result = queries.list_products(params.filters(), params.page, params.per_page)
    return responses.paginated(result["items"], result["pagination"], "Products retrieved successfully")


@product_router.get("/in-stock", dependencies=[Depends(rate_limited("public_browsing"))])
def in_stock_products():
    return responses.success(queries.in_stock_products(), "In-stock products retrieved successfully")


@product_router.get("/out-of-stock", dependencies=[Depends(rate_limited("public_browsing"))])
def out_of_stock_products():
    return responses.success(queries.out_of_stock_products(), "Out-of-stock products retrieved successfully")


@product_router.get("/search", dependencies=[Depends(rate_limited("search"))])
def search_products(params: Annotated[ProductSearchQuery, Query()]):
    result = queries.search_products(params.q, params.filters(), params.page, params.per_page)
    return responses.paginated(result["items"], result["pagination"], "Search results retrieved successfully")


@product_router.get("/{product_id}", dependencies=[Depends(rate_limited("public_browsing"))])
def get_product(product_id: str):
    return responses.success(queries.get_product(product_id), "Product retrieved successfully")


# --- Admin reads ---


@admin_product_router.get("/statistics", dependencies=[Depends(rate_limited("admin_read"))])
def product_statistics():
    return responses.success(queries.product_statistics(), "Product statistics retrieved successfully")


@admin_product_router.get("/cache-statistics", dependencies=[Depends(rate_limited("admin_read"))])
def cache_statistics():
    return responses.success(cache.get_cache().statistics(), "Cache statistics retrieved successfully")


@admin_product_router.get("/low-stock", dependencies=[Depends(rate_limited("admin_read"))])
def low_stock_products(threshold: int = Query(10, ge=0, le=1000)):
    return responses.success(queries.low_stock_products(threshold), "Low stock products retrieved successfully")


@admin_product_router.get("/popular", dependencies=[Depends(rate_limited("admin_read"))])
def popular_products(limit: int = Query(10, ge=1, le=100)):
    return responses.success(queries.popular_products(limit), "Popular products retrieved successfully")


@admin_product_router.get("/recently-added", dependencies=[Depends(rate_limited("admin_read"))])
def recently_added_products(days: int = Query(7, ge=1, le=365), limit: int = Query(10, ge=1, le=100)):
    return responses.success(
        queries.recently_added_products(days, limit), "Recently added products retrieved successfully"
    )


@admin_product_router.get("/price-range", dependencies=[Depends(rate_limited("admin_read"))])
def products_by_price_range(min_price: float = Query(..., ge=0), max_price: float = Query(..., ge=0)):
    return responses.success(
        queries.products_by_price_range(min_price, max_price), "Products retrieved successfully"
    )


# --- Admin writes ---


@admin_product_router.post("", status_code=201, dependencies=[Depends(rate_limited("admin_write"))])
def create(body: CreateProductRequest):
    product = current_domain.process(CreateProduct(**body.model_dump()), asynchronous=False)
    return responses.created(product, "Product created successfully")


@admin_product_router.put("/bulk-update", dependencies=[Depends(rate_limited("bulk_operations"))])
def bulk_update_products(body: BulkUpdateRequest):
    items = [
        {"id": item.id, "stock": item.stock, "price": None if item.price is None else str(item.price)}
        for item in body.products
    ]
    products = current_domain.process(BulkUpdateProducts(products=items), asynchronous=False)
    return responses.success(products, "Products updated successfully")


@admin_product_router.put("/{product_id}", dependencies=[Depends(rate_limited("admin_write"))])
def update(product_id: str, body: UpdateProductRequest):
    command = UpdateProduct(product_id=product_id, **body.model_dump())
    return responses.success(current_domain.process(command, asynchronous=False), "Product updated successfully")


@admin_product_router.delete("/{product_id}", dependencies=[Depends(rate_limited("admin_write"))])
def delete(product_id: str):
    current_domain.process(DeleteProduct(product_id=product_id), asynchronous=False)
    return responses.deleted("Product deleted successfully")


@admin_product_router.put("/{product_id}/restore", dependencies=[Depends(rate_limited("admin_write"))])
def restore(product_id: str):
    product = current_domain.process(RestoreProduct(product_id=product_id), asynchronous=False)
    return responses.success(product, "Product restored successfully")


@admin_product_router.put("/{product_id}/stock", dependencies=[Depends(rate_limited("admin_write"))])
def set_stock(product_id: str, body: UpdateStockRequest):
    command = UpdateStock(product_id=product_id, stock=body.stock, reason=body.reason)
    return responses.success(current_domain.process(command, asynchronous=False), "Product stock updated successfully")
