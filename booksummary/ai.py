import asyncio
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

import httpx
import numpy as np

from .config import Settings
from .errors import EmptyGeneration, FetchError, InvalidApiKeyFormat, MissingApiKey, ProviderError
from .models import Book, SummaryRequest
from .storage import API_KEY_KEY


logger = logging.getLogger(__name__)

BATCH_FAILURE_TEXT = "Summary generation failed."


# === API key (kept in the session scratch storage) ===

def set_api_key(session, api_key: str) -> str:
    key = api_key.strip()
    session.scratch.set(API_KEY_KEY, key)
    return key


def get_api_key(session) -> Optional[str]:
    return session.scratch.get(API_KEY_KEY)


def validate_api_key(api_key: Optional[str]) -> bool:
    # Gemini keys start with "AIza"
    key = (api_key or "").strip()
    return key.startswith("AIza") and len(key) > 20


def _key_prefix(api_key: str) -> str:
    return api_key[:8] + "..."


def build_prompt(req: SummaryRequest, content_limit: int = 5000) -> str:
    prompt = f'Generate a comprehensive summary for the book "{req.title}"'
    if req.author and req.author.strip():
        prompt += f" by {req.author}"
    if req.genres:
        prompt += f". The book belongs to the following genres: {', '.join(req.genres)}."
    if req.content and req.content.strip():
        prompt += f". Here's the content to summarize: {req.content[:content_limit]}..."
    else:
        prompt += ". The summary should cover the main themes, characters, and key points of the book."
    return prompt


def _extract_text(data: Any) -> Optional[str]:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        try:
            text = data["contents"][0]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
    return text if isinstance(text, str) and text.strip() else None


class GeminiSummaryBackend:
    """Text generation through the Gemini ``generateContent`` endpoint."""

    requires_api_key = True

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str, api_key: Optional[str] = None) -> str:
        url = f"{self.base_url}/{self.model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        logger.info("Sending summary request with key %s", _key_prefix(api_key or ""))
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": api_key}, json=body)
        except httpx.HTTPError as exc:
            logger.error("Summary request failed: %s", exc)
            raise FetchError(
                "Network error: Unable to connect to the Gemini API. Please make sure your "
                "API key is correct and that you have a valid internet connection."
            ) from exc

        if response.is_error:
            try:
                data = response.json()
            except ValueError:
                data = {}
            error = data.get("error") if isinstance(data, dict) else None
            if not isinstance(error, dict):
                error = {}
            code = error.get("code")
            if not isinstance(code, int):
                code = response.status_code
            message = error.get("message") or response.reason_phrase or "Unknown error"
            logger.error("Summary provider returned %s: %s", code, message)
            raise ProviderError(code, message)

        try:
            text = _extract_text(response.json())
        except ValueError:
            text = None
        if not text:
            logger.error("Summary provider returned no text")
            raise EmptyGeneration()
        return text


class LocalSummaryBackend:
    """FLAN-T5 through a ``text2text-generation`` pipeline, loaded on first use."""

    requires_api_key = False

    def __init__(self, model_name: str = "google/flan-t5-base", max_new_tokens: int = 256) -> None:
        self.model_name = model_name
        self.max_new_tokens = max_new_tokens
        self._pipeline = None

    def _load(self):
        if self._pipeline is None:
            from transformers import AutoModelForSeq2SeqLM, AutoTokenizer, pipeline

            tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            model = AutoModelForSeq2SeqLM.from_pretrained(self.model_name)
            self._pipeline = pipeline("text2text-generation", model=model, tokenizer=tokenizer)
        return self._pipeline

    def _run(self, prompt: str) -> str:
        result = self._load()(prompt, max_new_tokens=self.max_new_tokens)[0]["generated_text"]
        return result

    async def generate(self, prompt: str, api_key: Optional[str] = None) -> str:
        text = await asyncio.to_thread(self._run, prompt)
        if not text or not text.strip():
            raise EmptyGeneration()
        return text


class SummaryGenerator:
    def __init__(self, backend, content_limit: int = 5000) -> None:
        self.backend = backend
        self.content_limit = content_limit

    def _checked_key(self, session) -> Optional[str]:
        if not self.backend.requires_api_key:
            return None
        api_key = get_api_key(session)
        if not api_key:
            raise MissingApiKey()
        api_key = api_key.strip()
        if not validate_api_key(api_key):
            raise InvalidApiKeyFormat()
        return api_key

    async def generate_summary(self, session, req: SummaryRequest) -> str:
        api_key = self._checked_key(session)
        prompt = build_prompt(req, self.content_limit)
        logger.debug("Summary prompt: %s", prompt)
        return await self.backend.generate(prompt, api_key)

    async def generate_batch(self, session, books: Sequence[Book], delay: float = 1.0) -> Dict[str, str]:
        """One summary per book, sequentially; a failed book gets a fixed message."""
        results: Dict[str, str] = {}
        for book in books:
            req = SummaryRequest(title=book.title, author=book.author.name, genres=book.genre)
            try:
                results[book.id] = await self.generate_summary(session, req)
            except (FetchError, ProviderError, EmptyGeneration, MissingApiKey, InvalidApiKeyFormat) as exc:
                logger.error("Failed to generate summary for book %s: %s", book.id, exc)
                results[book.id] = BATCH_FAILURE_TEXT
            if delay:
                await asyncio.sleep(delay)
        return results


def make_summary_generator(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> SummaryGenerator:
    if settings.summary_provider == "local":
        backend = LocalSummaryBackend(settings.local_summary_model)
    else:
        backend = GeminiSummaryBackend(
            settings.gemini_base_url,
            settings.gemini_model,
            timeout=settings.http_timeout,
            transport=transport,
        )
    return SummaryGenerator(backend, content_limit=settings.summary_content_limit)


# === Embeddings for related books ===

@lru_cache(maxsize=2)
def get_embedder(model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
    from sentence_transformers import SentenceTransformer

    return SentenceTransformer(model_name)


def _cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)


def _book_text(book: Book) -> str:
    return f"{book.title}. {' '.join(book.genre)}. {book.short_summary or book.summary}"


def rank_by_similarity(book: Book, candidates: List[Book], encode, limit: int = 4) -> List[Book]:
    """Order ``candidates`` by cosine similarity to ``book``.

    ``encode`` maps a list of strings to a 2-D array of vectors, e.g.
    ``SentenceTransformer.encode``.
    """
    others = [c for c in candidates if c.id != book.id]
    if not others:
        return []
    vectors = np.asarray(encode([_book_text(book)] + [_book_text(c) for c in others]))
    target = vectors[0]
    sims = [(c, _cosine_similarity(target, vec)) for c, vec in zip(others, vectors[1:])]
    sims.sort(key=lambda x: x[1], reverse=True)
    return [c for c, _ in sims[:limit]]
