"""
Synthetic "modern books" feed.

The feed pretends to be a paginated API over a fixed universe of
``total`` records. Each record is a pure function of ``(seed, index)``:
the same seed always yields the same catalogue, across pages and across
processes. Generated records are cached by index.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import quote

from ..models import MODERN_PREFIX, Author, Book, TextSection


GENRES = [
    "Fiction", "Non-fiction", "Science Fiction", "Fantasy", "Mystery",
    "Thriller", "Romance", "Historical Fiction", "Biography", "Self-help",
    "Business", "Science", "Technology", "Philosophy", "Psychology",
    "Politics", "Travel", "Cooking", "Art", "Music",
]

AUTHORS = [
    "Margaret Atwood", "Haruki Murakami", "Toni Morrison", "Stephen King",
    "J.K. Rowling", "George R.R. Martin", "Neil Gaiman", "Chimamanda Ngozi Adichie",
    "Donna Tartt", "Khaled Hosseini", "Dan Brown", "Malcolm Gladwell",
    "Yuval Noah Harari", "Michelle Obama", "Ta-Nehisi Coates", "Zadie Smith",
    "Cormac McCarthy", "Ian McEwan", "Gillian Flynn", "Colson Whitehead",
]

TITLE_PREFIXES = [
    "The", "A", "Secret", "Lost", "Hidden", "Forgotten", "Last", "First",
    "New", "Ancient", "Modern", "Eternal", "Infinite", "Dark", "Bright",
    "Silent", "Loud", "Quiet", "Brave", "Fearless",
]

TITLE_NOUNS = [
    "Road", "Mountain", "River", "Forest", "City", "Ocean", "Sky", "Star",
    "Moon", "Sun", "Dream", "Memory", "Hope", "Love", "Journey", "Adventure",
    "Mystery", "Secret", "Truth", "Lie", "Song", "Dance", "Story", "Tale",
    "History", "Future", "Past", "Present", "Life", "Death",
]

TITLE_SUFFIXES = [
    "of Time", "of Space", "of Light", "of Darkness", "of the Heart",
    "of the Mind", "of the Soul", "of the World", "of the Universe",
    "of Tomorrow", "of Yesterday", "of Dreams", "of Memories",
    "of Shadows", "of Echoes", "of Whispers", "of Silence",
    "of Eternity", "of Infinity", "of Destiny",
]

SUMMARY_TEMPLATES = [
    (
        'In "{title}", {author} explores the complexities of human relationships against the '
        "backdrop of a rapidly changing world. Set in {year}, the story follows the journey of a "
        "protagonist who must confront personal demons while navigating societal expectations. "
        "With rich characterization and evocative prose, this {genre} novel delves into themes of "
        "identity, belonging, and the search for meaning in a chaotic universe."
    ),
    (
        '{author}\'s bestselling {genre} book "{title}" takes readers on an unforgettable journey '
        "through time and space. Published in {year}, this groundbreaking work challenges "
        "conventional wisdom and offers fresh perspectives on age-old questions. Critics have "
        "praised its innovative narrative structure and powerful emotional impact, cementing "
        "{author}'s reputation as one of the most important voices of the modern literary landscape."
    ),
    (
        '"{title}" is a captivating {genre} masterpiece that showcases {author}\'s unparalleled '
        "storytelling abilities. Written in {year}, this book weaves together multiple storylines "
        "with precision and grace, creating a tapestry of human experience that resonates with "
        "readers across generations. Through memorable characters and vivid settings, {author} "
        "explores universal themes of love, loss, and redemption."
    ),
    (
        "In this thought-provoking {genre} work published in {year}, {author} invites readers to "
        'question their assumptions about reality and truth. "{title}" combines scholarly research '
        "with accessible prose, making complex ideas understandable without sacrificing depth. The "
        "book has been hailed as a landmark contribution to its field, influencing countless other "
        "authors and thinkers since its publication."
    ),
    (
        '{author}\'s "{title}" stands as a defining {genre} text of the late {decade}s. Through '
        "meticulous research and compelling narrative, the book illuminates hidden aspects of our "
        "shared history and challenges readers to see the world with new eyes. Since its "
        "publication in {year}, it has sparked important conversations about responsibility, "
        "justice, and the possibility of positive change in an imperfect world."
    ),
]


@dataclass
class ModernBook:
    id: str
    title: str
    author: str
    summary: str
    cover_image: str
    published_year: int
    genres: List[str] = field(default_factory=list)
    rating: float = 3.0
    likes: int = 0
    is_trending: bool = False


@dataclass
class ModernPage:
    books: List[ModernBook]
    total: int


class ModernBooksGenerator:
    def __init__(
        self,
        total: int = 5000,
        seed: str = "booksummary",
        latency: float = 1.0,
        reference_year: Optional[int] = None,
    ) -> None:
        self.total = total
        self.seed = seed
        self.latency = latency
        self.reference_year = reference_year or datetime.now(timezone.utc).year
        self._cache: Dict[int, ModernBook] = {}

    def _rng(self, index: int) -> random.Random:
        return random.Random(f"{self.seed}:{index}")

    def generate(self, index: int) -> ModernBook:
        if index in self._cache:
            return self._cache[index]
        rng = self._rng(index)
        year = rng.randrange(1950, self.reference_year)

        title = f"{rng.choice(TITLE_PREFIXES)} {rng.choice(TITLE_NOUNS)}"
        if rng.random() > 0.5:
            title += " " + rng.choice(TITLE_SUFFIXES)
        author = rng.choice(AUTHORS)
        genres = rng.sample(GENRES, rng.randint(1, 3))
        summary = rng.choice(SUMMARY_TEMPLATES).format(
            title=title,
            author=author,
            genre=genres[0],
            year=year,
            decade=year // 10 * 10,
        )
        book = ModernBook(
            id=str(index),
            title=title,
            author=author,
            summary=summary,
            cover_image=(
                f"https://source.unsplash.com/random/500x700/?book,{quote(genres[0])}&sig={index}"
            ),
            published_year=year,
            genres=genres,
            rating=round(rng.random() * 2 + 3, 1),
            likes=rng.randrange(100),
            is_trending=rng.random() > 0.8,
        )
        self._cache[index] = book
        return book

    def get(self, index: int) -> Optional[ModernBook]:
        if not 0 <= index < self.total:
            return None
        return self.generate(index)

    async def fetch_page(self, page: int = 1, limit: int = 20) -> ModernPage:
        """Return one page of the feed after the simulated latency."""
        if self.latency:
            await asyncio.sleep(self.latency)
        page = max(1, page)
        start = (page - 1) * limit
        end = min(start + limit, self.total)
        return ModernPage(books=[self.generate(i) for i in range(start, end)], total=self.total)


def modern_to_book(raw: ModernBook) -> Book:
    summary = raw.summary
    return Book(
        id=f"{MODERN_PREFIX}{raw.id}",
        title=raw.title,
        author=Author(id=f"author-{raw.id}", name=raw.author),
        cover_url=raw.cover_image,
        summary=summary,
        rich_summary=[TextSection(content=summary)],
        short_summary=summary[:100] + "..." if len(summary) > 100 else summary,
        genre=raw.genres,
        date_added=datetime.now(timezone.utc).isoformat(),
        rating=raw.rating,
        year_published=raw.published_year,
        likes=raw.likes,
        is_trending=raw.is_trending,
    )
