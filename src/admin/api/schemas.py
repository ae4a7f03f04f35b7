from typing import Literal

from pydantic import BaseModel, Field


class ClearCacheRequest(BaseModel):
    tags: list[Literal["products", "search", "orders"]] = Field(min_length=1)
