"""
Typed collections on top of the ``EntityStore``.

Each repository reads its whole collection, applies one change and
writes the whole collection back. Records are validated into pydantic
models on the way in; a snapshot that no longer validates is treated
like a malformed one and the seed data is used instead.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Type

from pydantic import ValidationError
from werkzeug.security import generate_password_hash

from . import seed
from .blog import calculate_reading_time, create_slug
from .config import Settings
from .errors import EmailAlreadyRegistered, ExternalBookError, NotFound
from .models import (
    Account,
    Author,
    BlogPost,
    BlogPostCreate,
    BlogPostUpdate,
    Book,
    BookComment,
    BookCreate,
    BookUpdate,
    CamelModel,
    is_external,
)
from .storage import ACCOUNTS_KEY, BLOG_POSTS_KEY, BOOKS_KEY, COMMENTS_KEY, EntityStore


logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _timestamp_id(prefix: str, taken: List[str]) -> str:
    stamp = int(time.time() * 1000)
    candidate = f"{prefix}-{stamp}"
    while candidate in taken:
        stamp += 1
        candidate = f"{prefix}-{stamp}"
    return candidate


class _Collection:
    key: str = ""
    model: Type[CamelModel] = CamelModel

    def __init__(self, store: EntityStore, defaults: Callable[[], List[CamelModel]]) -> None:
        self.store = store
        self._defaults = defaults
        self._default_json: Optional[List[dict]] = None

    def _default(self) -> List[dict]:
        if self._default_json is None:
            self._default_json = [item.to_json() for item in self._defaults()]
        return self._default_json

    def _load(self) -> List:
        default = self._default()
        raw = self.store.load(self.key, default)
        try:
            return [self.model.model_validate(item) for item in raw]
        except (ValidationError, TypeError) as exc:
            logger.warning("Invalid records under %s, using defaults: %s", self.key, exc)
            return [self.model.model_validate(item) for item in default]

    def _save(self, items: List) -> None:
        self.store.save(self.key, [item.to_json() for item in items])


class BookRepository(_Collection):
    """Locally curated books. External ids are read-only here."""

    key = BOOKS_KEY
    model = Book

    def __init__(self, store: EntityStore) -> None:
        super().__init__(store, seed.sample_books)

    def list(self) -> List[Book]:
        return self._load()

    def get(self, book_id: str) -> Optional[Book]:
        return next((b for b in self._load() if b.id == book_id), None)

    def create(self, req: BookCreate) -> Book:
        books = self._load()
        ids = [b.id for b in books]
        if req.id and is_external(req.id):
            raise ExternalBookError("External books cannot be added to the local catalogue.")
        book_id = req.id if req.id and req.id not in ids else _timestamp_id("book", ids)
        book = Book(
            id=book_id,
            title=req.title,
            author=Author(id=f"author-{book_id}", name=req.author_name, bio=req.author_bio),
            cover_url=req.cover_url,
            summary=req.summary,
            rich_summary=req.rich_summary,
            short_summary=req.short_summary or req.summary[:100],
            genre=req.genre,
            date_added=_now(),
            rating=req.rating,
            page_count=req.page_count,
            year_published=req.year_published,
            is_featured=req.is_featured,
            is_trending=req.is_trending,
            audio_summary_url=req.audio_summary_url,
            gutenberg_id=req.gutenberg_id,
        )
        books.append(book)
        self._save(books)
        logger.info("Created book %s", book.id)
        return book

    def update(self, book_id: str, req: BookUpdate) -> Book:
        if is_external(book_id):
            raise ExternalBookError("Cannot edit external book: changes are never saved.")
        books = self._load()
        for i, book in enumerate(books):
            if book.id != book_id:
                continue
            # null means "leave unchanged"
            changes = req.model_dump(exclude_unset=True, exclude_none=True)
            author = book.author.model_dump()
            if changes.get("author_name") is not None:
                author["name"] = changes["author_name"]
            if changes.get("author_bio") is not None:
                author["bio"] = changes["author_bio"]
            changes.pop("author_name", None)
            changes.pop("author_bio", None)
            updated = Book.model_validate({**book.model_dump(), **changes, "author": author})
            books[i] = updated
            self._save(books)
            return updated
        raise NotFound(f"Book '{book_id}' not found")

    def delete(self, book_id: str) -> None:
        if is_external(book_id):
            raise ExternalBookError("Cannot delete external book.")
        books = self._load()
        remaining = [b for b in books if b.id != book_id]
        if len(remaining) == len(books):
            raise NotFound(f"Book '{book_id}' not found")
        self._save(remaining)
        logger.info("Deleted book %s", book_id)

    def like(self, book_id: str) -> Book:
        books = self._load()
        for i, book in enumerate(books):
            if book.id == book_id:
                books[i] = book.model_copy(update={"likes": book.likes + 1})
                self._save(books)
                return books[i]
        raise NotFound(f"Book '{book_id}' not found")


class BlogRepository(_Collection):
    key = BLOG_POSTS_KEY
    model = BlogPost

    def __init__(self, store: EntityStore) -> None:
        super().__init__(store, seed.sample_blog_posts)

    def list(self) -> List[BlogPost]:
        return self._load()

    def get_by_slug(self, slug: str) -> Optional[BlogPost]:
        return next((p for p in self._load() if p.slug == slug), None)

    def create(self, req: BlogPostCreate) -> BlogPost:
        posts = self._load()
        post = BlogPost(
            id=_timestamp_id("blog", [p.id for p in posts]),
            slug=create_slug(req.title),
            reading_time=calculate_reading_time(req.content),
            published_date=req.published_date or _now()[:10],
            **req.model_dump(exclude={"published_date"}),
        )
        posts.append(post)
        self._save(posts)
        return post

    def update(self, post_id: str, req: BlogPostUpdate) -> BlogPost:
        posts = self._load()
        for i, post in enumerate(posts):
            if post.id != post_id:
                continue
            merged = {**post.model_dump(), **req.model_dump(exclude_unset=True, exclude_none=True)}
            merged["slug"] = create_slug(merged["title"])
            merged["reading_time"] = calculate_reading_time(merged["content"])
            posts[i] = BlogPost.model_validate(merged)
            self._save(posts)
            return posts[i]
        raise NotFound(f"Blog post '{post_id}' not found")

    def delete(self, post_id: str) -> None:
        posts = self._load()
        remaining = [p for p in posts if p.id != post_id]
        if len(remaining) == len(posts):
            raise NotFound(f"Blog post '{post_id}' not found")
        self._save(remaining)


class AccountRepository(_Collection):
    """Registered accounts, including the configured admin account."""

    key = ACCOUNTS_KEY
    model = Account

    def __init__(self, store: EntityStore, settings: Settings) -> None:
        super().__init__(store, lambda: [self._admin_account()])
        self.settings = settings

    def _admin_account(self) -> Account:
        return Account(
            id="admin-1",
            name=self.settings.admin_name,
            email=self.settings.admin_email,
            password_hash=generate_password_hash(self.settings.admin_password),
            role="admin",
            date_registered=_now(),
        )

    def ensure_admin(self) -> None:
        """Make sure the configured admin account is present in the collection."""
        accounts = self._load()
        if not any(a.role == "admin" and a.email.lower() == self.settings.admin_email.lower() for a in accounts):
            accounts.append(self._admin_account())
            self._save(accounts)

    def list(self) -> List[Account]:
        return self._load()

    def find_by_email(self, email: str) -> Optional[Account]:
        wanted = email.strip().lower()
        return next((a for a in self._load() if a.email.lower() == wanted), None)

    def add(self, name: str, email: str, password: str) -> Account:
        if self.find_by_email(email) is not None:
            raise EmailAlreadyRegistered()
        accounts = self._load()
        account = Account(
            id=f"user-{uuid.uuid4().hex[:12]}",
            name=name,
            email=email.strip(),
            password_hash=generate_password_hash(password),
            role="user",
            date_registered=_now(),
        )
        accounts.append(account)
        self._save(accounts)
        return account

    def update(self, account_id: str, **changes) -> Account:
        accounts = self._load()
        for i, account in enumerate(accounts):
            if account.id == account_id:
                accounts[i] = account.model_copy(update=changes)
                self._save(accounts)
                return accounts[i]
        raise NotFound(f"Account '{account_id}' not found")


class CommentRepository(_Collection):
    key = COMMENTS_KEY
    model = BookComment

    def __init__(self, store: EntityStore) -> None:
        super().__init__(store, seed.sample_comments)

    def for_book(self, book_id: str) -> List[BookComment]:
        comments = [c for c in self._load() if c.book_id == book_id]
        return sorted(comments, key=lambda c: c.date, reverse=True)

    def add(self, book_id: str, user_name: str, content: str) -> BookComment:
        comments = self._load()
        comment = BookComment(
            id=_timestamp_id("comment", [c.id for c in comments]),
            book_id=book_id,
            user_name=user_name,
            content=content.strip(),
            date=_now(),
        )
        comments.append(comment)
        self._save(comments)
        return comment
