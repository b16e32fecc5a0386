import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from fastapi import Query
from sqlalchemy import or_

from trashapp.core.errors import AppError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PaginationParams:
    page: int
    page_size: int
    skip: int
    limit: int
    search: Optional[str] = None


def _to_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_pagination(page: Any = None, page_size: Any = None, search: Optional[str] = None) -> PaginationParams:
    """Validate raw query values; non-numeric input falls back to the defaults."""
    page_num = _to_int(page, DEFAULT_PAGE)
    size = _to_int(page_size, DEFAULT_PAGE_SIZE)

    if page_num < 1:
        raise AppError("Page number must be greater than 0", "INVALID_PAGE")
    if size < 1 or size > MAX_PAGE_SIZE:
        raise AppError(f"Page size must be between 1 and {MAX_PAGE_SIZE}", "INVALID_PAGE_SIZE")

    term = search.strip() if isinstance(search, str) else None
    return PaginationParams(
        page=page_num,
        page_size=size,
        skip=(page_num - 1) * size,
        limit=size,
        search=term or None,
    )


async def get_pagination(
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
) -> PaginationParams:
    return parse_pagination(page, page_size, search)


def pagination_metadata(total_items: int, page: int, page_size: int) -> Dict[str, Any]:
    total_pages = math.ceil(total_items / page_size)
    has_next = page < total_pages
    has_previous = page > 1
    return {
        "current_page": page,
        "page_size": page_size,
        "total_items": total_items,
        "total_pages": total_pages,
        "has_next_page": has_next,
        "has_previous_page": has_previous,
        "next_page": page + 1 if has_next else None,
        "previous_page": page - 1 if has_previous else None,
    }


def search_filter(term: Optional[str], columns: Sequence[Any]):
    """Case-insensitive substring match on any of ``columns``; None when there is nothing to filter."""
    if not term or not columns:
        return None
    clauses = [column.icontains(term, autoescape=True) for column in columns]
    if len(clauses) == 1:
        return clauses[0]
    return or_(*clauses)
