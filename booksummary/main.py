# booksummary/main.py
import logging
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .ai import get_embedder, make_summary_generator
from .api import admin, auth as auth_api, blog, preferences, summaries
from .auth import AuthService, SessionRegistry
from .catalog import router as catalog_routes
from .catalog.gutendex_service import GutendexClient
from .catalog.modern_service import ModernBooksGenerator
from .catalog.store import CatalogService
from .config import Settings, get_settings
from .dependencies import SESSION_COOKIE, Services
from .errors import BookSummaryError
from .repositories import AccountRepository, BlogRepository, BookRepository, CommentRepository
from .storage import EntityStore, JsonFileBackend, MemoryBackend


logger = logging.getLogger(__name__)


def build_services(
    settings: Settings, http_transport: Optional[httpx.AsyncBaseTransport] = None
) -> Services:
    if settings.storage_backend == "memory":
        backend = MemoryBackend()
    else:
        backend = JsonFileBackend(Path(settings.data_dir))
    store = EntityStore(backend)

    books = BookRepository(store)
    comments = CommentRepository(store)
    accounts = AccountRepository(store, settings)
    accounts.ensure_admin()

    encode = None
    if settings.semantic_related:
        embedder = get_embedder(settings.embedding_model)

        def encode(texts):
            return embedder.encode(texts, convert_to_numpy=True)

    catalog = CatalogService(
        books,
        comments,
        GutendexClient(
            settings.gutendex_base_url,
            timeout=settings.http_timeout,
            transport=http_transport,
            cache_size=settings.gutendex_cache_size,
            cache_ttl=settings.gutendex_cache_ttl,
        ),
        ModernBooksGenerator(
            total=settings.modern_books_total,
            seed=settings.modern_books_seed,
            latency=settings.modern_books_latency,
        ),
        page_size=settings.default_page_size,
        encode=encode,
        channel_cache_size=settings.channel_cache_size,
        external_likes_size=settings.external_likes_size,
    )
    return Services(
        settings=settings,
        store=store,
        books=books,
        blog=BlogRepository(store),
        accounts=accounts,
        comments=comments,
        auth=AuthService(accounts),
        sessions=SessionRegistry(backend, maxsize=settings.session_cache_size, ttl=settings.session_ttl),
        catalog=catalog,
        summaries=make_summary_generator(settings, transport=http_transport),
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title="BookSummary",
        description=(
            "Book summary discovery service: a local catalogue, Project Gutenberg "
            "search, a synthetic modern feed and AI-drafted summaries."
        ),
        version="1.0.0",
    )
    app.state.services = build_services(settings, http_transport)

    @app.exception_handler(BookSummaryError)
    async def handle_book_summary_error(request: Request, exc: BookSummaryError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_notification()})

    @app.middleware("http")
    async def session_cookie(request: Request, call_next):
        session_id = request.cookies.get(SESSION_COOKIE)
        fresh = not session_id
        if fresh:
            session_id = SessionRegistry.new_id()
        request.state.session_id = session_id
        response = await call_next(request)
        if fresh:
            response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
        return response

    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "BookSummary API live"}

    app.include_router(catalog_routes.router)
    app.include_router(auth_api.router)
    app.include_router(admin.router)
    app.include_router(blog.router)
    app.include_router(summaries.router)
    app.include_router(preferences.router)

    logger.info("BookSummary API ready (storage=%s)", settings.storage_backend)
    return app
