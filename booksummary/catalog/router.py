"""
Route definitions for the catalogue API.

Endpoints:
- GET  /api/books                 : aggregated, paginated listing (all sources)
- GET  /api/books/featured        : featured local books
- GET  /api/books/home            : featured book + trending books for the home page
- GET  /api/books/trending        : trending, top rated and most liked
- GET  /api/books/{book_id}       : one book (local, gutenberg-N or modern-N)
- GET  /api/books/{book_id}/related
- GET  /api/books/{book_id}/comments, POST (login required)
- POST /api/books/{book_id}/like  : login required
- GET  /api/catalog/gutenberg     : Gutendex search
- GET  /api/catalog/popular     : most downloaded Gutenberg books
- GET  /api/catalog/modern        : synthetic modern feed
- GET  /api/catalog/categories    : first books of the default Gutendex categories
- GET  /api/categories, /api/categories/{name}
"""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import Services, get_services, get_session_id, user_required
from ..models import Book, BookComment, CommentCreate, User
from .aggregator import SourceFilter
from .schemas import CategoryBooks, HomeBooks, LikeResult, PaginatedBooks, TrendingBooks


router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/books", response_model=PaginatedBooks)
async def list_books(
    q: Optional[str] = Query(default=None, description="Search in title and author"),
    source: SourceFilter = Query(default="all", description="all, local, gutenberg or modern"),
    page: int = Query(default=1, description="1-based page; lower values are clamped to 1"),
    page_size: Optional[int] = Query(default=None, ge=1, le=200),
    session_id: str = Depends(get_session_id),
    services: Services = Depends(get_services),
) -> PaginatedBooks:
    return await services.catalog.browse(
        f"{session_id}:books", query=q, source=source, page=page, page_size=page_size
    )


@router.get("/books/featured", response_model=List[Book])
def featured_books(services: Services = Depends(get_services)) -> List[Book]:
    return services.catalog.featured_books()


@router.get("/books/home", response_model=HomeBooks)
def home_books(services: Services = Depends(get_services)) -> HomeBooks:
    return services.catalog.home()


@router.get("/books/trending", response_model=TrendingBooks)
def trending_books(services: Services = Depends(get_services)) -> TrendingBooks:
    return services.catalog.trending_view()


@router.get("/books/{book_id}", response_model=Book)
async def get_book(book_id: str, services: Services = Depends(get_services)) -> Book:
    return await services.catalog.get_book(book_id)


@router.get("/books/{book_id}/related", response_model=List[Book])
async def related_books(
    book_id: str,
    limit: int = Query(default=4, ge=1, le=20),
    services: Services = Depends(get_services),
) -> List[Book]:
    return await services.catalog.related(book_id, limit)


@router.get("/books/{book_id}/comments", response_model=List[BookComment])
async def list_comments(book_id: str, services: Services = Depends(get_services)) -> List[BookComment]:
    return await services.catalog.comments_for(book_id)


@router.post("/books/{book_id}/comments", response_model=BookComment, status_code=201)
async def add_comment(
    book_id: str,
    req: CommentCreate,
    user: User = Depends(user_required("/book")),
    services: Services = Depends(get_services),
) -> BookComment:
    return await services.catalog.add_comment(book_id, user.name, req.content)


@router.post("/books/{book_id}/like", response_model=LikeResult)
async def like_book(
    book_id: str,
    user: User = Depends(user_required("/book")),
    services: Services = Depends(get_services),
) -> LikeResult:
    return await services.catalog.like(book_id)


@router.get("/catalog/gutenberg", response_model=PaginatedBooks)
async def search_gutenberg(
    q: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    session_id: str = Depends(get_session_id),
    services: Services = Depends(get_services),
) -> PaginatedBooks:
    return await services.catalog.browse(
        f"{session_id}:gutenberg", query=q, source="gutenberg", page=page
    )


@router.get("/catalog/popular", response_model=PaginatedBooks)
async def popular_books(
    page: int = Query(default=1),
    services: Services = Depends(get_services),
) -> PaginatedBooks:
    return await services.catalog.popular(page)


@router.get("/catalog/modern", response_model=PaginatedBooks)
async def modern_books(
    page: int = Query(default=1),
    limit: int = Query(default=20, ge=1, le=100),
    session_id: str = Depends(get_session_id),
    services: Services = Depends(get_services),
) -> PaginatedBooks:
    return await services.catalog.modern_page(f"{session_id}:modern", page=page, limit=limit)


@router.get("/catalog/categories", response_model=Dict[str, List[Book]])
async def categories_overview(services: Services = Depends(get_services)) -> Dict[str, List[Book]]:
    return await services.catalog.categories_overview()


@router.get("/categories", response_model=List[str])
def list_categories(services: Services = Depends(get_services)) -> List[str]:
    return services.catalog.categories()


@router.get("/categories/{name}", response_model=CategoryBooks)
async def category_books(name: str, services: Services = Depends(get_services)) -> CategoryBooks:
    return await services.catalog.category_books(name)
