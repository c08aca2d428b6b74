"""Shared fixtures: in-memory storage, fake Gutendex and Gemini servers."""

import json
import re

import httpx
import pytest
from fastapi.testclient import TestClient

from booksummary.auth import AuthService, SessionContext
from booksummary.config import Settings
from booksummary.main import create_app
from booksummary.repositories import AccountRepository, BookRepository
from booksummary.storage import EntityStore, MemoryBackend


def make_raw_book(book_id, title, author="Twain, Mark", subjects=None, **extra):
    raw = {
        "id": book_id,
        "title": title,
        "authors": [{"name": author, "birth_year": 1835, "death_year": 1910}],
        "subjects": subjects if subjects is not None else ["Adventure stories", "Mississippi River -- Fiction"],
        "bookshelves": ["Banned Books"],
        "languages": ["en"],
        "formats": {"image/jpeg": f"https://www.gutenberg.org/cache/epub/{book_id}/cover.jpg"},
        "download_count": 1000,
    }
    raw.update(extra)
    return raw


TWAIN_BOOKS = [
    make_raw_book(76, "Adventures of Huckleberry Finn"),
    make_raw_book(74, "The Adventures of Tom Sawyer"),
]


def gutendex_handler(request: httpx.Request) -> httpx.Response:
    """Answer like gutendex.com for a handful of known books."""
    path = request.url.path.rstrip("/")
    match = re.search(r"/books/(\d+)$", path)
    if match:
        book_id = int(match.group(1))
        for raw in TWAIN_BOOKS:
            if raw["id"] == book_id:
                return httpx.Response(200, json=raw)
        return httpx.Response(404, json={"detail": "Not found."})
    if path.endswith("/books"):
        params = request.url.params
        query = (params.get("search") or params.get("topic") or "").lower()
        results = TWAIN_BOOKS if "twain" in query or "adventure" in query or params.get("sort") else []
        return httpx.Response(
            200, json={"count": len(results), "next": None, "previous": None, "results": results}
        )
    if "generateContent" in path:
        body = json.loads(request.content)
        prompt = body["contents"][0]["parts"][0]["text"]
        return httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": f"Summary for: {prompt[:40]}"}]}}]}
        )
    return httpx.Response(404)


@pytest.fixture
def settings():
    return Settings(
        storage_backend="memory",
        modern_books_latency=0,
        modern_books_total=100,
        gutendex_base_url="https://gutendex.test/books",
        gemini_base_url="https://gemini.test/v1beta/models",
    )


@pytest.fixture
def store():
    return EntityStore(MemoryBackend())


@pytest.fixture
def book_repo(store):
    return BookRepository(store)


@pytest.fixture
def accounts(store, settings):
    return AccountRepository(store, settings)


@pytest.fixture
def auth(accounts):
    return AuthService(accounts)


@pytest.fixture
def session():
    return SessionContext(MemoryBackend(), MemoryBackend())


@pytest.fixture
def transport():
    return httpx.MockTransport(gutendex_handler)


@pytest.fixture
def client(settings, transport):
    app = create_app(settings, http_transport=transport)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client, settings):
    response = client.post(
        "/api/auth/login", json={"email": settings.admin_email, "password": settings.admin_password}
    )
    assert response.status_code == 200
    return client
