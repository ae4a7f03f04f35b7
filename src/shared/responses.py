"""Uniform JSON envelopes for every API response."""

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from shared import config
from shared.db import utcnow


def _timestamp() -> str:
    return utcnow().isoformat() + "Z"


def success(data=None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "success": True,
                "message": message,
                "data": data,
                "timestamp": _timestamp(),
            }
        ),
    )


def created(data=None, message: str = "Resource created successfully") -> JSONResponse:
    return success(data, message, status_code=201)


def deleted(message: str = "Resource deleted successfully") -> JSONResponse:
    return success(None, message)


def paginated(items: list, pagination: dict, message: str = "Data retrieved successfully") -> JSONResponse:
    """Success envelope plus the ``pagination`` block built by ``Page.meta()``."""
    return JSONResponse(
        content=jsonable_encoder(
            {
                "success": True,
                "message": message,
                "data": items,
                "pagination": pagination,
                "timestamp": _timestamp(),
            }
        ),
    )


def error(
    message: str = "Error occurred",
    status_code: int = 400,
    errors=None,
    debug: dict | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    content = {
        "success": False,
        "message": message,
        "timestamp": _timestamp(),
    }
    if errors is not None:
        content["errors"] = errors
    if debug is not None and config.APP_DEBUG:
        content["debug"] = debug
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)
