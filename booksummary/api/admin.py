"""
Admin endpoints: book and blog post CRUD, Gutenberg imports.

Every route depends on ``admin_required``; an anonymous caller gets a
401 pointing at /login, a signed-in non-admin a 403 pointing at /.
External books (``gutenberg-*``, ``modern-*``) are read-only; a Gutenberg
book can be imported as a local copy instead.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response

from ..dependencies import Services, admin_required, get_services
from ..models import (
    Account,
    BlogPost,
    BlogPostCreate,
    BlogPostUpdate,
    Book,
    BookCreate,
    BookUpdate,
    GutenbergImport,
    User,
)


router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(admin_required("/admin"))])


@router.get("/books", response_model=List[Book])
def list_books(services: Services = Depends(get_services)) -> List[Book]:
    return services.books.list()


@router.post("/books", response_model=Book, status_code=201)
def create_book(req: BookCreate, services: Services = Depends(get_services)) -> Book:
    return services.books.create(req)


@router.post("/books/import/{gutenberg_id}", response_model=Book, status_code=201)
async def import_gutenberg_book(
    gutenberg_id: int, req: GutenbergImport, services: Services = Depends(get_services)
) -> Book:
    return await services.catalog.import_gutenberg(gutenberg_id, req)


@router.put("/books/{book_id}", response_model=Book)
def update_book(book_id: str, req: BookUpdate, services: Services = Depends(get_services)) -> Book:
    return services.books.update(book_id, req)


@router.delete("/books/{book_id}", status_code=204)
def delete_book(book_id: str, services: Services = Depends(get_services)) -> Response:
    services.books.delete(book_id)
    return Response(status_code=204)


@router.get("/blog", response_model=List[BlogPost])
def list_posts(services: Services = Depends(get_services)) -> List[BlogPost]:
    return services.blog.list()


@router.post("/blog", response_model=BlogPost, status_code=201)
def create_post(req: BlogPostCreate, services: Services = Depends(get_services)) -> BlogPost:
    return services.blog.create(req)


@router.put("/blog/{post_id}", response_model=BlogPost)
def update_post(post_id: str, req: BlogPostUpdate, services: Services = Depends(get_services)) -> BlogPost:
    return services.blog.update(post_id, req)


@router.delete("/blog/{post_id}", status_code=204)
def delete_post(post_id: str, services: Services = Depends(get_services)) -> Response:
    services.blog.delete(post_id)
    return Response(status_code=204)


@router.get("/users", response_model=List[User])
def list_users(services: Services = Depends(get_services)) -> List[User]:
    accounts: List[Account] = services.accounts.list()
    return [User(id=a.id, name=a.name, email=a.email, role=a.role) for a in accounts]
