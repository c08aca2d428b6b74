"""Sample records written as the initial snapshot of each collection."""

from typing import List

from .models import Author, BlogPost, Book, BookComment


AUTHORS = [
    Author(
        id="author-1",
        name="James Clear",
        bio="James Clear is an author and speaker focused on habits, decision-making, and continuous improvement.",
    ),
    Author(
        id="author-2",
        name="Dale Carnegie",
        bio="Dale Carnegie was an American writer and lecturer and the developer of courses in self-improvement.",
    ),
    Author(
        id="author-3",
        name="Robert Greene",
        bio="Robert Greene is an American author known for his books on strategy, power, and seduction.",
    ),
    Author(
        id="author-4",
        name="Ryan Holiday",
        bio="Ryan Holiday is an American author, bookstore owner, and host of the podcast The Daily Stoic.",
    ),
    Author(
        id="author-5",
        name="Yuval Noah Harari",
        bio="Yuval Noah Harari is a historian and professor at the Hebrew University of Jerusalem.",
    ),
]


def sample_books() -> List[Book]:
    a = AUTHORS
    return [
        Book(
            id="book-1",
            title="Atomic Habits",
            author=a[0],
            cover_url="https://images.unsplash.com/photo-1544947950-fa07a98d237f",
            summary=(
                "Tiny Changes, Remarkable Results. Atomic Habits offers a proven framework for "
                "improving every day. You do not rise to the level of your goals. You fall to "
                "the level of your systems."
            ),
            short_summary="An easy and proven way to build good habits and break bad ones through small, incremental changes.",
            genre=["Self-Help", "Productivity", "Psychology"],
            date_added="2023-12-01",
            rating=4.8,
            page_count=320,
            year_published=2018,
            likes=5432,
            is_featured=True,
            is_trending=True,
        ),
        Book(
            id="book-2",
            title="How to Win Friends and Influence People",
            author=a[1],
            cover_url="https://images.unsplash.com/photo-1589829085413-56de8ae18c73",
            summary=(
                "Dale Carnegie's first book is a timeless bestseller, packed with advice on the "
                "six ways to make people like you and the twelve ways to win people to your way "
                "of thinking."
            ),
            short_summary="The first and still the best book of its kind to lead you to success with people.",
            genre=["Self-Help", "Communication", "Psychology"],
            date_added="2023-11-15",
            rating=4.7,
            page_count=288,
            year_published=1936,
            likes=8754,
            is_trending=True,
        ),
        Book(
            id="book-3",
            title="The 48 Laws of Power",
            author=a[2],
            cover_url="https://images.unsplash.com/photo-1541963463532-d68292c34b19",
            summary=(
                "Three thousand years of the history of power distilled into 48 essential laws, "
                "drawing from Machiavelli, Sun Tzu and Carl von Clausewitz."
            ),
            short_summary="A guide to understanding and using power dynamics through historical examples.",
            genre=["Psychology", "History", "Business"],
            date_added="2023-10-20",
            rating=4.6,
            page_count=452,
            year_published=1998,
            likes=7654,
        ),
        Book(
            id="book-4",
            title="The Obstacle Is the Way",
            author=a[3],
            cover_url="https://images.unsplash.com/photo-1543002588-bfa74002ed7e",
            summary=(
                "The book draws its inspiration from stoicism, the ancient Greek philosophy of "
                "enduring pain or adversity with perseverance and resilience."
            ),
            short_summary="A modern reframing of Stoic philosophy that turns obstacles into opportunities.",
            genre=["Philosophy", "Self-Help", "Business"],
            date_added="2023-11-05",
            rating=4.5,
            page_count=224,
            year_published=2014,
            likes=5421,
            is_featured=True,
        ),
        Book(
            id="book-5",
            title="Sapiens: A Brief History of Humankind",
            author=a[4],
            cover_url="https://images.unsplash.com/photo-1545239351-cefa43af60f3",
            summary=(
                "Harari spans the whole of human history, from the first humans to the "
                "Cognitive, Agricultural and Scientific Revolutions."
            ),
            short_summary="A narrative of humanity's creation and evolution.",
            genre=["History", "Anthropology", "Science"],
            date_added="2023-09-10",
            rating=4.7,
            page_count=464,
            year_published=2014,
            likes=9876,
            is_featured=True,
            is_trending=True,
        ),
        Book(
            id="book-6",
            title="Ego Is the Enemy",
            author=a[3],
            cover_url="https://images.unsplash.com/photo-1544947950-fa07a98d237f",
            summary=(
                "The most common enemy lies within: our ego. Early in our careers it impedes "
                "learning; with success it blinds us to our faults."
            ),
            short_summary="How our ego can be our biggest obstacle to success and fulfillment.",
            genre=["Philosophy", "Self-Help", "Psychology"],
            date_added="2023-10-05",
            rating=4.5,
            page_count=256,
            year_published=2016,
            likes=4321,
            is_trending=True,
        ),
    ]


def sample_comments() -> List[BookComment]:
    return [
        BookComment(
            id="comment-1",
            book_id="book-1",
            user_name="Alex Johnson",
            content="This book completely changed how I think about habit formation.",
            date="2023-12-05",
            likes=24,
        ),
        BookComment(
            id="comment-2",
            book_id="book-1",
            user_name="Sarah Miller",
            content="The most practical framework for actually implementing changes in your life.",
            date="2023-12-03",
            likes=18,
        ),
        BookComment(
            id="comment-3",
            book_id="book-2",
            user_name="Michael Brown",
            content="Written decades ago, yet the principles are still incredibly relevant today.",
            date="2023-11-20",
            likes=32,
        ),
        BookComment(
            id="comment-4",
            book_id="book-4",
            user_name="Emily Wilson",
            content="The stoic philosophy in this book has guided me through difficult times.",
            date="2023-11-18",
            likes=15,
        ),
        BookComment(
            id="comment-5",
            book_id="book-5",
            user_name="David Chen",
            content="Harari's perspective on human history is fascinating and thought-provoking.",
            date="2023-10-30",
            likes=41,
        ),
    ]


_ENTREPRENEURS = """
# Top 10 Book Summaries for Entrepreneurs

As an entrepreneur, time is your most valuable asset. Reading book summaries
allows you to extract the core ideas from business literature without spending
hours on each book.

## 1. "The Lean Startup" by Eric Ries

Start with a minimum viable product, test your assumptions with real customers
and pivot when the data tells you to.

## 2. "Zero to One" by Peter Thiel

The most valuable businesses create something entirely new.

## 3. "Atomic Habits" by James Clear

Focus on systems, not goals. Small improvements compound over time.
"""

_WHY_SUMMARIES = """
# Why Reading Summaries Saves Time and Boosts Knowledge

The average person reads 200-300 words per minute. A typical business book
takes 3-5 hours to read; a well-crafted summary delivers the key insights in
15-30 minutes.

## How to Make the Most of Book Summaries

1. **Read actively** - Take notes even on summaries
2. **Implement immediately** - Apply one idea from each summary
3. **Use summaries as filters** - Decide which books to read in full
"""


def sample_blog_posts() -> List[BlogPost]:
    return [
        BlogPost(
            id="blog-1",
            title="Top 10 Book Summaries for Entrepreneurs",
            slug="top-10-book-summaries-for-entrepreneurs",
            excerpt="Discover the most impactful book summaries that every entrepreneur should read.",
            content=_ENTREPRENEURS,
            cover_image="https://images.unsplash.com/photo-1523731407965-2430cd12f5e4",
            tags=["Entrepreneurship", "Business", "Book Summaries", "Productivity"],
            published_date="2025-02-15",
            reading_time=8,
            is_featured=True,
        ),
        BlogPost(
            id="blog-2",
            title="Why Reading Summaries Saves Time and Boosts Knowledge",
            slug="why-reading-summaries-saves-time-and-boosts-knowledge",
            excerpt="How book summaries help you absorb more information in less time.",
            content=_WHY_SUMMARIES,
            cover_image="https://images.unsplash.com/photo-1513475382585-d06e58bcb0e0",
            tags=["Reading", "Productivity", "Learning", "Self-improvement"],
            published_date="2025-03-01",
            reading_time=6,
            is_featured=True,
        ),
    ]
