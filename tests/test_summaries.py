"""Tests for the summary draft generator."""

import asyncio
import json

import httpx
import pytest

from booksummary.ai import (
    BATCH_FAILURE_TEXT,
    GeminiSummaryBackend,
    SummaryGenerator,
    build_prompt,
    get_api_key,
    set_api_key,
    validate_api_key,
)
from booksummary.errors import (
    EmptyGeneration,
    FetchError,
    InvalidApiKeyFormat,
    MissingApiKey,
    ProviderError,
)
from booksummary.models import Author, Book, SummaryRequest

VALID_KEY = "AIza" + "x" * 30


def make_generator(handler, content_limit=5000):
    backend = GeminiSummaryBackend(
        "https://gemini.test/v1beta/models",
        "gemini-1.5-flash",
        transport=httpx.MockTransport(handler),
    )
    return SummaryGenerator(backend, content_limit=content_limit)


def ok_handler(request):
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "A fine summary."}]}}]})


class TestApiKey:
    """Key storage and the format heuristic."""

    def test_set_trims_and_stores_in_scratch(self, session):
        """The key is trimmed and never reaches the persistent backend."""
        set_api_key(session, f"  {VALID_KEY}  ")
        assert get_api_key(session) == VALID_KEY
        assert session.persistent.get("ai_api_key") is None

    @pytest.mark.parametrize(
        "key, valid",
        [(VALID_KEY, True), ("AIza-short", False), ("sk-" + "x" * 30, False), ("", False), (None, False)],
    )
    def test_validate(self, key, valid):
        """Keys start with AIza and are longer than 20 characters."""
        assert validate_api_key(key) is valid


class TestPrompt:
    """Prompt construction."""

    def test_all_fields(self):
        """Title, author and genres are embedded."""
        prompt = build_prompt(SummaryRequest(title="Walden", author="Thoreau", genres=["Nature", "Essays"]))
        assert prompt.startswith('Generate a comprehensive summary for the book "Walden" by Thoreau')
        assert "genres: Nature, Essays." in prompt
        assert prompt.endswith("key points of the book.")

    def test_content_is_truncated(self):
        """Raw content is cut to the limit and marked with an ellipsis."""
        prompt = build_prompt(SummaryRequest(title="T", content="abcdef" * 10), content_limit=12)
        assert prompt.endswith("Here's the content to summarize: abcdefabcdef...")


class TestGenerateSummary:
    """Request/response handling against a fake endpoint."""

    def test_success(self, session):
        """The text is read from the first candidate."""
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return ok_handler(request)

        set_api_key(session, VALID_KEY)
        text = asyncio.run(make_generator(handler).generate_summary(session, SummaryRequest(title="Walden")))

        assert text == "A fine summary."
        assert seen["url"].path.endswith("/gemini-1.5-flash:generateContent")
        assert seen["url"].params["key"] == VALID_KEY
        assert "Walden" in seen["body"]["contents"][0]["parts"][0]["text"]

    def test_contents_shape_is_accepted(self, session):
        """The alternative contents[0].parts[0].text shape works too."""
        set_api_key(session, VALID_KEY)
        generator = make_generator(
            lambda request: httpx.Response(200, json={"contents": [{"parts": [{"text": "Alt."}]}]})
        )
        assert asyncio.run(generator.generate_summary(session, SummaryRequest(title="T"))) == "Alt."

    def test_missing_key(self, session):
        """No key in the session."""
        with pytest.raises(MissingApiKey):
            asyncio.run(make_generator(ok_handler).generate_summary(session, SummaryRequest(title="T")))

    def test_invalid_key_format(self, session):
        """A key that fails the heuristic is rejected before any request."""
        set_api_key(session, "not-a-key")
        with pytest.raises(InvalidApiKeyFormat):
            asyncio.run(make_generator(ok_handler).generate_summary(session, SummaryRequest(title="T")))

    @pytest.mark.parametrize(
        "code, fragment",
        [(400, "invalid API key"), (403, "Access denied"), (429, "Rate limit exceeded"), (500, "API Error (500)")],
    )
    def test_provider_errors(self, session, code, fragment):
        """Error codes map to their own wording."""

        def handler(request):
            return httpx.Response(code, json={"error": {"code": code, "message": "boom"}})

        set_api_key(session, VALID_KEY)
        with pytest.raises(ProviderError) as excinfo:
            asyncio.run(make_generator(handler).generate_summary(session, SummaryRequest(title="T")))
        assert excinfo.value.code == code
        assert fragment in excinfo.value.description

    @pytest.mark.parametrize("error", [{"code": "RESOURCE_EXHAUSTED", "message": "slow down"}, "quota"])
    def test_odd_error_bodies_use_http_status(self, session, error):
        """A non-numeric or missing error code falls back to the HTTP status."""

        def handler(request):
            return httpx.Response(429, json={"error": error})

        set_api_key(session, VALID_KEY)
        with pytest.raises(ProviderError) as excinfo:
            asyncio.run(make_generator(handler).generate_summary(session, SummaryRequest(title="T")))
        assert excinfo.value.code == 429
        assert "Rate limit exceeded" in excinfo.value.description

    def test_empty_generation(self, session):
        """A parseable answer without text."""
        set_api_key(session, VALID_KEY)
        generator = make_generator(lambda request: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(EmptyGeneration):
            asyncio.run(generator.generate_summary(session, SummaryRequest(title="T")))

    def test_network_error(self, session):
        """Transport failures surface as FetchError."""

        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        set_api_key(session, VALID_KEY)
        with pytest.raises(FetchError):
            asyncio.run(make_generator(handler).generate_summary(session, SummaryRequest(title="T")))


class TestBatch:
    """Sequential batch generation."""

    def test_failed_books_get_fixed_text(self, session):
        """One failing book does not stop the others."""

        def handler(request):
            prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
            if "Broken" in prompt:
                return httpx.Response(429, json={"error": {"code": 429, "message": "slow down"}})
            return ok_handler(request)

        books = [
            Book(id="b1", title="Fine", author=Author(id="a1", name="A"), genre=["X"]),
            Book(id="b2", title="Broken", author=Author(id="a2", name="B")),
        ]
        set_api_key(session, VALID_KEY)
        results = asyncio.run(make_generator(handler).generate_batch(session, books, delay=0))
        assert results == {"b1": "A fine summary.", "b2": BATCH_FAILURE_TEXT}
