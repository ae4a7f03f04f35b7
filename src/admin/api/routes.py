"""FastAPI endpoints for cache administration."""

from fastapi import APIRouter, Depends

from admin import cache as cache_admin
from admin.api.schemas import ClearCacheRequest
from identity.dependencies import rate_limited, require_admin
from shared import responses
from shared.cache import get_cache

router = APIRouter(
    prefix="/admin/cache",
    tags=["admin-cache"],
    dependencies=[Depends(require_admin), Depends(rate_limited("admin_write"))],
)


@router.get("/statistics")
def statistics():
    return responses.success(get_cache().statistics(), "Cache statistics retrieved successfully")


@router.get("/info")
def info():
    return responses.success(get_cache().info(), "Cache info retrieved successfully")


@router.post("/clear")
def clear_by_tags(body: ClearCacheRequest):
    removed = cache_admin.clear_tags(body.tags)
    return responses.success(
        {"keys_removed": removed}, f"Cache cleared successfully for tags: {', '.join(body.tags)}"
    )


@router.post("/warm-up")
def warm_up():
    return responses.success(cache_admin.warm_up(), "Cache warm-up completed successfully")


@router.delete("")
def clear_all():
    removed = cache_admin.clear_all()
    return responses.success({"keys_removed": removed}, "All cache cleared successfully")
