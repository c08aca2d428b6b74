"""
Response schemas for the catalogue endpoints.

``PaginatedBooks`` bundles one page of books with the pagination
metadata, so a client knows whether there is a next or previous page
without counting results itself.
"""

from typing import List, Optional

from pydantic import Field

from ..models import Book, CamelModel
from .aggregator import PageInfo


class PaginatedBooks(CamelModel):
    """A wrapper for paginated results returned from the listing endpoints."""

    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool
    items: List[Book]

    @classmethod
    def from_page(cls, info: PageInfo, items: List[Book]) -> "PaginatedBooks":
        return cls(
            page=info.page,
            page_size=info.page_size,
            total=info.total,
            total_pages=info.total_pages,
            has_next=info.has_next,
            has_prev=info.has_prev,
            items=items,
        )


class HomeBooks(CamelModel):
    featured: Optional[Book] = None
    trending: List[Book] = Field(default_factory=list)


class TrendingBooks(CamelModel):
    trending: List[Book] = Field(default_factory=list)
    top_rated: List[Book] = Field(default_factory=list)
    most_liked: List[Book] = Field(default_factory=list)


class CategoryBooks(CamelModel):
    category: str
    local: List[Book] = Field(default_factory=list)
    external: List[Book] = Field(default_factory=list)


class LikeResult(CamelModel):
    id: str
    likes: int
