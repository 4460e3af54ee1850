"""Page/search/sort parameters and query pagination."""

import math
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from fastapi import Query, Request
from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.exceptions import ValidationException

T = TypeVar("T")


@dataclass(frozen=True)
class PageParams:
    page: int = 1
    page_size: int = 10
    search: str | None = None
    sort: str | None = None
    order: Literal["asc", "desc"] = "desc"

    @property
    def offset(self) -> int:
        """Calculate offset for database query."""
        return (self.page - 1) * self.page_size


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def page_params(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int | None = Query(None, ge=1, description="Items per page"),
    search: str | None = Query(None, max_length=200, description="Case-insensitive substring search"),
    sort: str | None = Query(None, description="Field to sort by"),
    order: Literal["asc", "desc"] = Query("desc", description="Sort direction"),
) -> PageParams:
    """FastAPI dependency that reads and bounds pagination query parameters."""
    settings = request.app.state.settings
    if page_size is None:
        page_size = settings.default_page_size
    if page_size > settings.max_page_size:
        raise ValidationException(
            [{"field": "page_size", "message": f"must be at most {settings.max_page_size}"}]
        )
    search = search.strip() if search else None
    return PageParams(page=page, page_size=page_size, search=search or None, sort=sort, order=order)


async def paginate(
    db: AsyncSession,
    query: Select,
    params: PageParams,
    *,
    search_fields: tuple[Any, ...] = (),
    sort_fields: dict[str, Any],
    default_sort: str = "created_at",
    tie_breaker: Any = None,
) -> Page:
    """Apply search, sort and offset/limit to ``query`` and count the total.

    ``sort_fields`` whitelists the sortable columns by public name.
    """
    if params.search and search_fields:
        query = query.where(
            or_(*(column.icontains(params.search, autoescape=True) for column in search_fields))
        )

    sort_key = params.sort or default_sort
    if sort_key not in sort_fields:
        raise ValidationException(
            [{"field": "sort", "message": f"must be one of: {', '.join(sorted(sort_fields))}"}]
        )
    column = sort_fields[sort_key]

    # Get total count
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    ordering = [column.asc() if params.order == "asc" else column.desc()]
    if tie_breaker is not None:
        ordering.append(tie_breaker.asc() if params.order == "asc" else tie_breaker.desc())
    query = query.order_by(*ordering).offset(params.offset).limit(params.page_size)

    result = await db.execute(query)
    items = list(result.scalars().all())
    return Page(items=items, total=total, page=params.page, page_size=params.page_size)
