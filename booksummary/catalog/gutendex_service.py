"""
Gutendex (Project Gutenberg) integration for the catalogue.

It exposes an async ``GutendexClient`` with four calls:

* ``search()``: full-text search, one 1-based page at a time.
* ``get_by_id()``: a single work by its numeric Gutenberg id.
* ``search_by_topic()`` / ``popular()``: topic search and the most
  downloaded works, used by the category and trending views.

Raw results are plain dicts exactly as Gutendex returns them; the
normalization helpers below turn one into a ``Book``. None of the
helpers raise on missing fields: every lookup has a fallback value.

Responses are cached in memory per client instance, bounded in size and
age, so that paging back and forth inside a session does not hit the
API again. A request is attempted once; a non-2xx status or a
transport failure raises ``FetchError`` and the caller decides what to
do.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from cachetools import TTLCache

from ..errors import FetchError
from ..models import GUTENBERG_PREFIX, Author, Book, TextSection


logger = logging.getLogger(__name__)

# Gutendex serves a fixed number of results per page.
GUTENDEX_PAGE_SIZE = 32

DEFAULT_CATEGORIES = [
    "Fiction", "Mystery", "Science Fiction", "Romance", "Adventure",
    "Fantasy", "Classics", "Biography",
]

RawBook = Dict[str, Any]


@dataclass
class ExternalPage:
    results: List[RawBook] = field(default_factory=list)
    total_count: int = 0
    has_next: bool = False
    has_prev: bool = False
    page: int = 1


class GutendexClient:
    def __init__(
        self,
        base_url: str = "https://gutendex.com/books",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache_size: int = 512,
        cache_ttl: float = 3600.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._search_cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)
        self._book_cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
                headers={"Accept": "application/json"},
            ) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.error("Error fetching %s: %s", url, exc)
            raise FetchError(f"Error fetching books: {exc}") from exc
        if response.is_error:
            logger.warning("Gutendex request to %s returned status %s", url, response.status_code)
            raise FetchError(
                f"Error fetching books: {response.reason_phrase}", response.status_code
            )
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning("Gutendex request to %s returned a non-JSON-object body", url)
            raise FetchError("Error fetching books: invalid response", response.status_code)
        return data

    async def _page(self, cache_key: str, params: Dict[str, Any], page: int) -> ExternalPage:
        cached = self._search_cache.get(cache_key)
        if cached is not None:
            return cached
        page = max(1, int(page))
        data = await self._get_json(f"{self.base_url}/", params={**params, "page": page})
        results = [r for r in (data.get("results") or []) if isinstance(r, dict)]
        for raw in results:
            if isinstance(raw.get("id"), int):
                self._book_cache[raw["id"]] = raw
        result = ExternalPage(
            results=results,
            total_count=int(data.get("count") or 0),
            has_next=bool(data.get("next")),
            has_prev=bool(data.get("previous")),
            page=page,
        )
        self._search_cache[cache_key] = result
        return result

    async def search(self, query: str, page: int = 1) -> ExternalPage:
        return await self._page(f"search|{query}|{page}", {"search": query}, page)

    async def search_by_topic(self, topic: str, page: int = 1) -> ExternalPage:
        return await self._page(f"topic|{topic}|{page}", {"topic": topic}, page)

    async def popular(self, page: int = 1) -> ExternalPage:
        return await self._page(f"popular|{page}", {"sort": "download_count"}, page)

    async def get_by_id(self, book_id: int) -> RawBook:
        cached = self._book_cache.get(book_id)
        if cached is not None:
            return cached
        data = await self._get_json(f"{self.base_url}/{book_id}")
        self._book_cache[book_id] = data
        return data

    async def books_by_categories(
        self, categories: Optional[List[str]] = None, per_category: int = 8
    ) -> Dict[str, List[RawBook]]:
        """Fetch the first books of several topics concurrently.

        A failing topic yields an empty list instead of failing the
        whole batch.
        """
        names = categories or DEFAULT_CATEGORIES

        async def one(name: str) -> List[RawBook]:
            try:
                return (await self.search_by_topic(name)).results[:per_category]
            except FetchError as exc:
                logger.error("Error fetching %s books: %s", name, exc)
                return []

        fetched = await asyncio.gather(*(one(name) for name in names))
        return dict(zip(names, fetched))


# ---------------------------------------------------------------------------
# Normalization helpers


def _split_subject(subject: str) -> str:
    return re.split(r"--|,", subject)[0].strip()


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _first_author(raw: RawBook) -> Dict[str, Any]:
    authors = raw.get("authors") or []
    if authors and isinstance(authors[0], dict):
        return authors[0]
    return {}


def _strings(raw: RawBook, key: str) -> List[str]:
    return [s for s in (raw.get(key) or []) if isinstance(s, str)]


def cover_image_url(raw: RawBook) -> str:
    """Pick a cover from the format map; JPEG first, then PNG."""
    formats = raw.get("formats") or {}
    for mime in ("image/jpeg", "image/png", "image/jpg"):
        if formats.get(mime):
            return formats[mime]
    title = str(raw.get("title") or "book")
    seed = len(title) % 10
    return f"https://source.unsplash.com/random/300x400/?book,{quote(title)}&sig={seed}"


def extract_genres(raw: RawBook) -> List[str]:
    """Up to three genre tags from subjects, topped up with bookshelves."""
    subjects = _strings(raw, "subjects")[:3]
    if len(subjects) < 3:
        subjects += _strings(raw, "bookshelves")[: 3 - len(subjects)]
    genres = [_capitalize(_split_subject(s)) for s in subjects]
    genres = [g for g in genres if g]
    return genres or ["Classics"]


def extract_short_description(raw: RawBook) -> str:
    summaries = _strings(raw, "summaries")
    if summaries:
        summary = summaries[0]
        return summary[:100] + "..." if len(summary) > 100 else summary
    subjects = _strings(raw, "subjects")
    if subjects:
        top = ", ".join(_split_subject(s) for s in subjects[:3])
        return f"A classic work about {top}."
    author_name = _first_author(raw).get("name") or "an unknown author"
    return f"A classic work by {author_name}."


LANGUAGE_NAMES = {
    "en": "English", "fr": "French", "es": "Spanish", "de": "German",
    "it": "Italian", "pt": "Portuguese", "ru": "Russian", "ja": "Japanese",
    "zh": "Chinese", "la": "Latin", "gr": "Greek",
}

TEXT_FORMATS = [
    ("text/plain; charset=utf-8", "plain text"),
    ("text/html; charset=utf-8", "HTML"),
    ("application/epub+zip", "EPUB"),
    ("application/pdf", "PDF"),
]


def generate_detailed_summary(raw: RawBook) -> str:
    """Compose a multi-sentence description from the book's metadata."""
    author = _first_author(raw)
    author_name = author.get("name") or "an unknown author"
    years = ""
    if author.get("birth_year") and author.get("death_year"):
        years = f"({author['birth_year']}-{author['death_year']})"

    by_line = f"{author_name} {years}".strip()
    parts = [f"\"{raw.get('title') or 'Untitled'}\" is a classic work by {by_line}."]

    subjects = _strings(raw, "subjects")
    if subjects:
        topics = ", ".join(_split_subject(s) for s in subjects[:5])
        parts.append(f"The book covers topics such as {topics}.")

    if raw.get("download_count"):
        parts.append(f"It has been downloaded {raw['download_count']} times from Project Gutenberg.")

    languages = [LANGUAGE_NAMES.get(code, code) for code in _strings(raw, "languages")]
    if len(languages) == 1:
        parts.append(f"The book is available in {languages[0]}.")
    elif languages:
        parts.append(f"The book is available in {', '.join(languages[:-1])} and {languages[-1]}.")

    formats = raw.get("formats") or {}
    available = [label for mime, label in TEXT_FORMATS if formats.get(mime)]
    if available:
        plural = "s" if len(available) > 1 else ""
        parts.append(f"It can be read in {', '.join(available)} format{plural}.")

    return " ".join(parts)


SUBJECT_CATEGORIES = {
    "fiction": "Fiction",
    "novel": "Fiction",
    "juvenile fiction": "Children",
    "children": "Children",
    "children's literature": "Children",
    "science fiction": "Science Fiction",
    "adventure": "Adventure",
    "fantasy": "Fantasy",
    "mystery": "Mystery",
    "detective": "Mystery",
    "thriller": "Thriller",
    "horror": "Horror",
    "romance": "Romance",
    "love stories": "Romance",
    "historical": "Historical Fiction",
    "history": "History",
    "biography": "Biography",
    "autobiography": "Biography",
    "memoirs": "Biography",
    "philosophy": "Philosophy",
    "psychology": "Psychology",
    "self-help": "Self-Help",
    "business": "Business",
    "economics": "Business",
    "science": "Science",
    "technology": "Technology",
    "computers": "Technology",
    "art": "Art",
    "music": "Art",
    "poetry": "Poetry",
    "drama": "Drama",
    "plays": "Drama",
    "religion": "Religion",
    "spirituality": "Religion",
    "travel": "Travel",
    "cooking": "Cooking",
    "health": "Health",
    "sports": "Sports",
    "education": "Education",
    "reference": "Reference",
    "classic": "Classics",
    "literature": "Literature",
}


def map_subject_to_category(subject: str) -> str:
    lowered = subject.lower()
    for key, category in SUBJECT_CATEGORIES.items():
        if key in lowered:
            return category
    return _capitalize(subject)


def subject_categories(raw: RawBook) -> List[str]:
    """Known category names for the subjects of ``raw``, in order, without repeats."""
    known = set(SUBJECT_CATEGORIES.values())
    out: List[str] = []
    for subject in raw.get("subjects") or []:
        if not isinstance(subject, str):
            continue
        category = map_subject_to_category(subject)
        if category in known and category not in out:
            out.append(category)
    return out


def gutendex_to_book(raw: RawBook) -> Book:
    """Map a raw Gutendex record into the ``Book`` shape."""
    gid = raw.get("id")
    author = _first_author(raw)
    author_name = author.get("name") or "Unknown Author"
    birth_year = author.get("birth_year")
    summary = generate_detailed_summary(raw)
    return Book(
        id=f"{GUTENBERG_PREFIX}{gid}",
        title=str(raw.get("title") or "Untitled"),
        author=Author(
            id=f"gutenberg-author-{gid}",
            name=author_name,
            bio=f"{author_name} is an author of this book from Project Gutenberg.",
        ),
        cover_url=cover_image_url(raw),
        summary=summary,
        rich_summary=[TextSection(content=summary)],
        short_summary=extract_short_description(raw),
        genre=extract_genres(raw),
        date_added=datetime.now(timezone.utc).isoformat(),
        rating=4.0,
        year_published=birth_year + 30 if isinstance(birth_year, int) else 1900,
        likes=0,
        gutenberg_id=gid if isinstance(gid, int) else None,
    )
