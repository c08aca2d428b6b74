"""
Persisted key/value storage and the generic collection store.

A collection (books, blog posts, accounts, comments) is kept as ONE JSON
snapshot under a string key. Loading reads the whole snapshot, saving
rewrites it wholesale; there are no partial updates and no coordination
between writers, so the last write wins.

Backends
--------
``MemoryBackend``
    A plain dict; used for per-session scratch data and in tests.
``JsonFileBackend``
    One ``<key>.json`` file per key inside a data directory. Writes are
    synchronised with a ``threading.Lock`` so that two requests handled
    on different worker threads cannot interleave a write.
``NamespacedBackend``
    Prefixes every key, so several sessions can share one backend.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .errors import StorageError


logger = logging.getLogger(__name__)

# Persisted keys
BOOKS_KEY = "bookSummaryBooks"
BLOG_POSTS_KEY = "bookSummaryBlogPosts"
ACCOUNTS_KEY = "users"
COMMENTS_KEY = "bookSummaryComments"
USER_LOGGED_IN_KEY = "userLoggedIn"
ADMIN_LOGGED_IN_KEY = "adminLoggedIn"
CURRENT_USER_KEY = "currentUser"
THEME_KEY = "theme"

# Session-scoped keys
API_KEY_KEY = "ai_api_key"
REDIRECT_AFTER_LOGIN_KEY = "redirectAfterLogin"


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryBackend:
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileBackend:
    """Store each key as a file under ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        # Ensure the parent directory exists
        self.directory.mkdir(parents=True, exist_ok=True)
        with self._lock:
            self._path(key).write_text(value, encoding="utf-8")

    def remove(self, key: str) -> None:
        with self._lock:
            path = self._path(key)
            if path.exists():
                path.unlink()


class NamespacedBackend:
    def __init__(self, backend: KeyValueBackend, prefix: str) -> None:
        self.backend = backend
        self.prefix = prefix

    def get(self, key: str) -> Optional[str]:
        return self.backend.get(self.prefix + key)

    def set(self, key: str, value: str) -> None:
        self.backend.set(self.prefix + key, value)

    def remove(self, key: str) -> None:
        self.backend.remove(self.prefix + key)


@dataclass
class LoadResult:
    """Outcome of reading one snapshot: a value, nothing stored, or an error."""

    value: Any = None
    found: bool = False
    error: Optional[StorageError] = None

    @classmethod
    def ok(cls, value: Any) -> "LoadResult":
        return cls(value=value, found=True)

    @classmethod
    def missing(cls) -> "LoadResult":
        return cls()

    @classmethod
    def failed(cls, error: StorageError) -> "LoadResult":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.found and self.error is None


class EntityStore:
    """Load and save whole collections as JSON snapshots."""

    def __init__(self, backend: KeyValueBackend) -> None:
        self.backend = backend

    def try_load(self, key: str) -> LoadResult:
        """Read the snapshot stored under ``key`` without ever raising."""
        try:
            raw = self.backend.get(key)
        except OSError as exc:
            return LoadResult.failed(StorageError(f"Could not read '{key}': {exc}"))
        if raw is None:
            return LoadResult.missing()
        try:
            return LoadResult.ok(json.loads(raw))
        except ValueError as exc:
            return LoadResult.failed(StorageError(f"Malformed data stored under '{key}': {exc}"))

    def load(self, key: str, default: Any) -> Any:
        """Return the stored snapshot for ``key``.

        Parameters
        ----------
        key : str
            Collection key, e.g. ``bookSummaryBooks``.
        default : Any
            Value written as the initial snapshot when nothing is stored
            yet, and returned when the stored data cannot be parsed.

        Returns
        -------
        Any
            The deserialized snapshot, or ``default``.
        """
        result = self.try_load(key)
        if result.is_ok:
            return result.value
        if result.error is not None:
            logger.warning("Falling back to default for %s: %s", key, result.error)
            return default
        self.save(key, default)
        return default

    def save(self, key: str, collection: Any) -> None:
        """Serialize ``collection`` and overwrite the snapshot for ``key``."""
        try:
            payload = json.dumps(collection, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Could not serialize '{key}': {exc}") from exc
        try:
            self.backend.set(key, payload)
        except OSError as exc:
            logger.error("Write to %s failed: %s", key, exc)
            raise StorageError(f"Could not save '{key}': {exc}") from exc
