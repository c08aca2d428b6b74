"""
Catalogue service: the local collection plus the two external sources.

``CatalogService`` is the only place where the repositories and the
external clients meet. It resolves prefixed ids to the right source,
pages through the external feeds and hands everything to the pure
functions in ``aggregator`` for filtering and slicing.

Paginated browsing is tagged with a request generation per channel
(one channel per client session and listing). When a response arrives
after a newer request on the same channel has started, it is discarded
with ``StaleResponseError`` instead of overwriting the newer result.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Callable, Dict, List, Optional, Tuple

from cachetools import LRUCache

from ..ai import rank_by_similarity
from ..errors import AlreadyImported, FetchError, NotFound, StaleResponseError
from ..models import (
    GUTENBERG_PREFIX,
    MODERN_PREFIX,
    Book,
    BookComment,
    BookCreate,
    GutenbergImport,
    TextSection,
    source_of,
)
from ..repositories import BookRepository, CommentRepository
from . import aggregator
from .aggregator import GenerationCounter, SourceFilter
from .gutendex_service import GUTENDEX_PAGE_SIZE, GutendexClient, gutendex_to_book, subject_categories
from .modern_service import ModernBooksGenerator, modern_to_book
from .schemas import CategoryBooks, HomeBooks, LikeResult, PaginatedBooks, TrendingBooks


logger = logging.getLogger(__name__)


def _suffix_int(book_id: str, prefix: str) -> int:
    try:
        return int(book_id[len(prefix):])
    except ValueError:
        raise NotFound(f"Book '{book_id}' not found") from None


class CatalogService:
    def __init__(
        self,
        books: BookRepository,
        comments: CommentRepository,
        gutendex: GutendexClient,
        modern: ModernBooksGenerator,
        page_size: int = 32,
        encode: Optional[Callable] = None,
        channel_cache_size: int = 10000,
        external_likes_size: int = 10000,
    ) -> None:
        self.books = books
        self.comments = comments
        self.gutendex = gutendex
        self.modern = modern
        self.page_size = page_size
        # Sentence encoder for related-book ranking; None means genre overlap only.
        self.encode = encode
        self.generations = GenerationCounter(channel_cache_size)
        # Likes on external books are kept in memory only, for the most recently liked books.
        self._external_likes: LRUCache = LRUCache(maxsize=external_likes_size)

    # --- local views ---------------------------------------------------------

    def local_books(self) -> List[Book]:
        return self.books.list()

    def home(self) -> HomeBooks:
        books = self.local_books()
        featured = next(iter(aggregator.featured(books)), None)
        trending = aggregator.trending(books, exclude=featured.id if featured else None)
        return HomeBooks(featured=featured, trending=trending)

    def featured_books(self) -> List[Book]:
        return aggregator.featured(self.local_books())

    def trending_view(self) -> TrendingBooks:
        books = self.local_books()
        return TrendingBooks(
            trending=aggregator.trending(books, limit=None),
            top_rated=aggregator.top_rated(books),
            most_liked=aggregator.most_liked(books),
        )

    def categories(self) -> List[str]:
        return aggregator.categories(self.local_books())

    # --- external sources ----------------------------------------------------

    def _with_likes(self, book: Book) -> Book:
        extra = self._external_likes.get(book.id)
        if not extra:
            return book
        return book.model_copy(update={"likes": book.likes + extra})

    def _category_book(self, raw) -> Book:
        # Genres become category names from the subject table.
        book = self._with_likes(gutendex_to_book(raw))
        categories = subject_categories(raw)
        if not categories:
            return book
        return book.model_copy(update={"genre": categories[:3]})

    async def _gutenberg_page(self, query: Optional[str], page: int) -> Tuple[List[Book], int]:
        result = await self.gutendex.search(query or "", page)
        books = [self._with_likes(gutendex_to_book(raw)) for raw in result.results]
        return books, result.total_count

    async def _modern_page(self, page: int, limit: int) -> Tuple[List[Book], int]:
        result = await self.modern.fetch_page(page, limit)
        books = [self._with_likes(modern_to_book(raw)) for raw in result.books]
        return books, result.total

    async def browse(
        self,
        channel: str,
        query: Optional[str] = None,
        source: SourceFilter = "all",
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> PaginatedBooks:
        """One page of the aggregated catalogue.

        Each source is paged with the same page number. Local books are
        filtered by title or author; Gutendex runs the query upstream;
        the synthetic feed has no search and is left out when a query is
        given. ``total_pages`` is that of the longest source.

        Raises
        ------
        StaleResponseError
            A newer browse on ``channel`` started while this one was
            waiting on an external source.
        FetchError
            Gutendex could not be reached or answered with an error.
        """
        token = self.generations.begin(channel)
        page = aggregator.clamp_page(page)
        page_size = page_size or self.page_size
        query = (query or "").strip() or None

        local: List[Book] = []
        local_total = 0
        if source in ("all", "local"):
            matches = aggregator.list_for_display(self.local_books(), [], "local", query)
            local_total = len(matches)
            info = aggregator.paginate(local_total, page_size, page)
            local = aggregator.page_slice(matches, info)

        pending = []
        if source in ("all", "gutenberg"):
            pending.append(("gutenberg", self._gutenberg_page(query, page), GUTENDEX_PAGE_SIZE))
        if source == "modern" or (source == "all" and query is None):
            pending.append(("modern", self._modern_page(page, page_size), page_size))

        fetched = await asyncio.gather(*(coro for _, coro, _ in pending))
        if not self.generations.is_current(channel, token):
            logger.info("Discarding stale %s page %s on %s", source, page, channel)
            raise StaleResponseError()

        external: List[Book] = []
        totals = [local_total]
        pages = [math.ceil(local_total / page_size)]
        for (name, _, size), (books, total) in zip(pending, fetched):
            if name == "modern" and query:
                books = aggregator.list_for_display([], books, "modern", query)
            external.extend(books)
            totals.append(total)
            pages.append(math.ceil(total / size))

        items = aggregator.list_for_display(local, external, source)
        info = aggregator.paginate(sum(totals), page_size, page)
        info.total_pages = max(pages)
        info.has_next = page < info.total_pages
        return PaginatedBooks.from_page(info, items)

    async def popular(self, page: int = 1) -> PaginatedBooks:
        """Most downloaded Gutenberg books."""
        page = aggregator.clamp_page(page)
        result = await self.gutendex.popular(page)
        books = [self._with_likes(gutendex_to_book(raw)) for raw in result.results]
        return PaginatedBooks.from_page(
            aggregator.paginate(result.total_count, GUTENDEX_PAGE_SIZE, page), books
        )

    async def modern_page(self, channel: str, page: int = 1, limit: int = 20) -> PaginatedBooks:
        token = self.generations.begin(channel)
        page = aggregator.clamp_page(page)
        books, total = await self._modern_page(page, limit)
        if not self.generations.is_current(channel, token):
            raise StaleResponseError()
        return PaginatedBooks.from_page(aggregator.paginate(total, limit, page), books)

    async def get_book(self, book_id: str) -> Book:
        source = source_of(book_id)
        if source == "gutenberg":
            gid = _suffix_int(book_id, GUTENBERG_PREFIX)
            try:
                raw = await self.gutendex.get_by_id(gid)
            except FetchError as exc:
                if exc.upstream_status == 404:
                    raise NotFound(f"Book '{book_id}' not found") from exc
                raise
            return self._with_likes(gutendex_to_book(raw))
        if source == "modern":
            raw = self.modern.get(_suffix_int(book_id, MODERN_PREFIX))
            if raw is None:
                raise NotFound(f"Book '{book_id}' not found")
            return self._with_likes(modern_to_book(raw))
        book = self.books.get(book_id)
        if book is None:
            raise NotFound(f"Book '{book_id}' not found")
        return book

    async def import_gutenberg(self, gutenberg_id: int, req: GutenbergImport) -> Book:
        """Copy a Gutenberg book into the local catalogue under a local id.

        The copy keeps ``gutenberg_id`` and takes the admin's summaries,
        falling back to generic ones. A Gutenberg book is imported once.
        """
        if any(b.gutenberg_id == gutenberg_id for b in self.local_books()):
            raise AlreadyImported(f"Gutenberg book {gutenberg_id} is already in the catalogue.")
        source = await self.get_book(f"{GUTENBERG_PREFIX}{gutenberg_id}")
        name = source.author.name
        summary = req.summary or f'This is a book titled "{source.title}" by {name} from Project Gutenberg.'
        return self.books.create(
            BookCreate(
                title=source.title,
                author_name=name,
                author_bio=source.author.bio,
                cover_url=source.cover_url,
                summary=summary,
                rich_summary=[TextSection(content=summary)],
                short_summary=req.short_summary or f"A classic work by {name}.",
                genre=source.genre,
                rating=source.rating,
                year_published=source.year_published,
                gutenberg_id=gutenberg_id,
            )
        )

    async def related(self, book_id: str, limit: int = 4) -> List[Book]:
        book = await self.get_book(book_id)
        candidates = self.local_books()
        if self.encode is not None:
            return rank_by_similarity(book, candidates, self.encode, limit)
        return aggregator.related_books(book, candidates, limit)

    async def category_books(self, category: str, per_category: int = 8) -> CategoryBooks:
        local = aggregator.books_in_category(self.local_books(), category)
        result = await self.gutendex.search_by_topic(category)
        external = [self._category_book(raw) for raw in result.results[:per_category]]
        return CategoryBooks(category=category, local=local, external=external)

    async def categories_overview(self, per_category: int = 8) -> Dict[str, List[Book]]:
        """First Gutendex books of each default category, fetched concurrently."""
        grouped = await self.gutendex.books_by_categories(per_category=per_category)
        return {name: [self._category_book(raw) for raw in raws] for name, raws in grouped.items()}

    # --- likes & comments ----------------------------------------------------

    async def like(self, book_id: str) -> LikeResult:
        if source_of(book_id) == "local":
            book = self.books.like(book_id)
            return LikeResult(id=book.id, likes=book.likes)
        book = await self.get_book(book_id)
        self._external_likes[book_id] = self._external_likes.get(book_id, 0) + 1
        return LikeResult(id=book_id, likes=book.likes + 1)

    async def comments_for(self, book_id: str) -> List[BookComment]:
        await self.get_book(book_id)
        return self.comments.for_book(book_id)

    async def add_comment(self, book_id: str, user_name: str, content: str) -> BookComment:
        await self.get_book(book_id)
        return self.comments.add(book_id, user_name, content)
