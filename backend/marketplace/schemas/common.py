"""
Shared schema helpers.
"""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    One page of results plus the metadata clients need to paginate.

    Example:
        {"items": [...], "total": 42, "page": 2, "total_pages": 5}
    """
    items: List[T]
    total: int
    page: int
    total_pages: int

    @classmethod
    def build(cls, items: list, total: int, page: int, page_size: int) -> "Page":
        return cls(
            items=items,
            total=total,
            page=page,
            total_pages=math.ceil(total / page_size) if page_size else 0,
        )
