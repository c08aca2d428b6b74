"""
Compose local and external books into the lists the API returns.

Everything here is a pure function of its arguments: the repositories
and the external clients do the I/O, this module only filters, orders
and slices what they return.

Uniqueness of a book is its full id. Local ids carry no prefix while
external ids are always ``gutenberg-<n>`` or ``modern-<n>``, so two
sources can never produce the same id.
"""

from __future__ import annotations

import itertools
import math
import threading
from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional

from cachetools import LRUCache

from ..models import Book, source_of


SourceFilter = Literal["all", "local", "gutenberg", "modern"]

BASE_CATEGORIES = [
    "Fiction", "Non-Fiction", "Science Fiction", "Fantasy", "Mystery",
    "Thriller", "Romance", "Historical Fiction", "Biography", "Self-Help",
    "Business", "Philosophy", "Science", "Technology", "Art", "Poetry",
    "Drama", "Horror", "Adventure", "Classic", "Children", "Young Adult",
]


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def _unique(books: Iterable[Book]) -> List[Book]:
    seen = set()
    out: List[Book] = []
    for book in books:
        if book.id in seen:
            continue
        seen.add(book.id)
        out.append(book)
    return out


def matches_source(book: Book, source: SourceFilter) -> bool:
    return source == "all" or source_of(book.id) == source


def list_for_display(
    local_books: List[Book],
    external_books: List[Book],
    source: SourceFilter = "all",
    search: Optional[str] = None,
) -> List[Book]:
    """Local books first, then external ones, filtered by source and text.

    ``search`` matches title or author name, case-insensitively.
    """
    books = _unique(itertools.chain(local_books, external_books))
    books = [b for b in books if matches_source(b, source)]
    term = _norm(search)
    if term:
        books = [b for b in books if term in _norm(b.title) or term in _norm(b.author.name)]
    return books


@dataclass
class PageInfo:
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


def clamp_page(page: int) -> int:
    return max(1, int(page))


def paginate(total_count: int, page_size: int, current_page: int) -> PageInfo:
    page_size = max(1, int(page_size))
    page = clamp_page(current_page)
    total_pages = math.ceil(max(0, total_count) / page_size)
    return PageInfo(
        page=page,
        page_size=page_size,
        total=total_count,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def page_slice(books: List[Book], info: PageInfo) -> List[Book]:
    start = (info.page - 1) * info.page_size
    return books[start:start + info.page_size]


def featured(books: List[Book]) -> List[Book]:
    return [b for b in books if b.is_featured]


def trending(books: List[Book], exclude: Optional[str] = None, limit: Optional[int] = 4) -> List[Book]:
    """Trending books, newest first, optionally without one id (the featured book)."""
    picked = [b for b in books if b.is_trending and b.id != exclude]
    picked.sort(key=lambda b: b.date_added, reverse=True)
    return picked[:limit] if limit is not None else picked


def top_rated(books: List[Book], limit: int = 5) -> List[Book]:
    return sorted(books, key=lambda b: b.rating, reverse=True)[:limit]


def most_liked(books: List[Book], limit: int = 5) -> List[Book]:
    return sorted(books, key=lambda b: b.likes, reverse=True)[:limit]


def related_books(book: Book, candidates: List[Book], limit: int = 4) -> List[Book]:
    """Other books sharing at least one genre with ``book``."""
    genres = set(book.genre)
    related = [b for b in candidates if b.id != book.id and genres.intersection(b.genre)]
    return _unique(related)[:limit]


def categories(local_books: List[Book]) -> List[str]:
    names = set(BASE_CATEGORIES)
    for book in local_books:
        names.update(book.genre)
    return sorted(names)


def books_in_category(books: List[Book], category: str) -> List[Book]:
    return [b for b in books if category in b.genre]


def search_local(books: List[Book], term: Optional[str]) -> List[Book]:
    """Home page search: title, author name or any genre contains the term."""
    needle = _norm(term)
    if not needle:
        return list(books)
    return [
        b for b in books
        if needle in _norm(b.title)
        or needle in _norm(b.author.name)
        or any(needle in _norm(g) for g in b.genre)
    ]


class GenerationCounter:
    """Monotonic request generation per channel.

    ``begin`` hands out a token; once a newer request began on the same
    channel, ``is_current`` is false for every older token. Only the
    ``maxsize`` most recently used channels are tracked; tokens come from
    one counter shared by all channels, so a forgotten channel never
    hands out a token that was already issued.
    """

    def __init__(self, maxsize: int = 10000) -> None:
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._current: LRUCache = LRUCache(maxsize=maxsize)

    def begin(self, channel: str) -> int:
        with self._lock:
            token = next(self._tokens)
            self._current[channel] = token
            return token

    def is_current(self, channel: str, token: int) -> bool:
        with self._lock:
            return self._current.get(channel) == token

    def __len__(self) -> int:
        with self._lock:
            return len(self._current)
