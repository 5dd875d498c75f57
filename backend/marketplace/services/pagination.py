"""
Pagination helper shared by the list operations.
"""

from typing import List, Tuple

from sqlalchemy.orm import Query

from marketplace.core.constants import MAX_PAGE_SIZE
from marketplace.core.exceptions import ValidationError


def validate_page(page: int, page_size: int) -> None:
    """
    Raises:
        ValidationError: page < 1 or page_size outside 1..MAX_PAGE_SIZE
    """
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"page size must be between 1 and {MAX_PAGE_SIZE}")


def paginate(query: Query, page: int, page_size: int) -> Tuple[List, int]:
    """
    Run an already ordered query for one page.

    Returns:
        (items on the page, total rows matching the query)
    """
    validate_page(page, page_size)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return items, total
