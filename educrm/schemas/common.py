"""Common Pydantic schemas used across the application."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from educrm.utils.pagination import Page

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""

    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page) -> "PaginationMeta":
        return cls(page=page.page, page_size=page.page_size, total=page.total, total_pages=page.total_pages)


class APIResponse(BaseModel, Generic[T]):
    """Standard success envelope.

    All JSON API responses use this consistent envelope structure.
    """

    success: bool = True
    data: T | None = None
    message: str | None = None
    pagination: PaginationMeta | None = None


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(from_attributes=True)
