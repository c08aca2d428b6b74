"""Configuration management for the book summary service."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKSUMMARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    storage_backend: Literal["file", "memory"] = "file"
    data_dir: str = "data"

    # External catalogue
    gutendex_base_url: str = "https://gutendex.com/books"
    http_timeout: float = 10.0
    gutendex_cache_size: int = 512
    gutendex_cache_ttl: float = 3600.0

    # Synthetic "modern books" feed
    modern_books_total: int = 5000
    modern_books_seed: str = "booksummary"
    modern_books_latency: float = 1.0

    default_page_size: int = 32

    # In-memory bounds for per-session and per-book state
    session_cache_size: int = 10000
    session_ttl: float = 86400.0
    channel_cache_size: int = 10000
    external_likes_size: int = 10000

    # Seeded admin account
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"
    admin_name: str = "Admin"

    # Summary generation
    summary_provider: Literal["gemini", "local"] = "gemini"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    gemini_model: str = "gemini-1.5-flash"
    summary_content_limit: int = 5000
    local_summary_model: str = "google/flan-t5-base"

    # Related books
    semantic_related: bool = False
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
