"""Blog helpers: slugs, reading time, search and related posts."""

from __future__ import annotations

import math
import re
from typing import List, Optional, Tuple

from .models import BlogPost


WORDS_PER_MINUTE = 200


def create_slug(title: str) -> str:
    """Return a URL-friendly slug for ``title``.

    Lowercases, drops anything that is not a word character, whitespace
    or hyphen, turns whitespace runs into a hyphen and collapses repeated
    hyphens.
    """
    slug = title.strip().lower()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    return re.sub(r"-+", "-", slug)


def calculate_reading_time(text: str) -> int:
    """Minutes needed to read ``text`` at 200 words per minute, rounded up."""
    words = len(text.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def search_posts(posts: List[BlogPost], term: Optional[str], tag: Optional[str] = None) -> List[BlogPost]:
    """Posts whose title, excerpt or content contains ``term``, optionally with ``tag``."""
    nterm = _norm(term)
    return [
        p
        for p in posts
        if (not nterm or nterm in _norm(p.title) or nterm in _norm(p.excerpt) or nterm in _norm(p.content))
        and (not tag or tag in p.tags)
    ]


def all_tags(posts: List[BlogPost]) -> List[str]:
    tags: List[str] = []
    for post in posts:
        for tag in post.tags:
            if tag not in tags:
                tags.append(tag)
    return tags


def featured_split(posts: List[BlogPost]) -> Tuple[List[BlogPost], List[BlogPost]]:
    """Split ``posts`` into (featured, regular), preserving order."""
    featured = [p for p in posts if p.is_featured]
    regular = [p for p in posts if not p.is_featured]
    return featured, regular


def related_posts(post: BlogPost, posts: List[BlogPost], limit: int = 3) -> List[BlogPost]:
    tags = set(post.tags)
    return [p for p in posts if p.id != post.id and tags.intersection(p.tags)][:limit]
