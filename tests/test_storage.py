"""Tests for the key/value backends and the collection store."""

import pytest

from booksummary.errors import StorageError
from booksummary.storage import (
    EntityStore,
    JsonFileBackend,
    MemoryBackend,
    NamespacedBackend,
)


class TestEntityStore:
    """Snapshot load/save semantics."""

    @pytest.mark.parametrize(
        "collection",
        [
            [],
            [{"id": "book-1", "title": "Atomic Habits", "genre": ["Self-Help"]}],
            {"nested": {"list": [1, 2.5, None, True]}, "text": "café"},
        ],
    )
    def test_save_then_load_returns_same_value(self, collection):
        """A saved collection is loaded back unchanged."""
        store = EntityStore(MemoryBackend())
        store.save("bookSummaryBooks", collection)
        assert store.load("bookSummaryBooks", default=["unused"]) == collection

    def test_missing_key_writes_default(self):
        """The default becomes the initial snapshot when nothing is stored."""
        backend = MemoryBackend()
        store = EntityStore(backend)

        assert store.load("users", default=[{"id": "admin-1"}]) == [{"id": "admin-1"}]
        assert backend.get("users") == '[{"id": "admin-1"}]'

    def test_malformed_snapshot_falls_back_to_default(self):
        """Unparseable data yields the default and is left in place."""
        backend = MemoryBackend()
        backend.set("bookSummaryBooks", "{not json")
        store = EntityStore(backend)

        assert store.load("bookSummaryBooks", default=[]) == []
        assert backend.get("bookSummaryBooks") == "{not json"

    def test_try_load_reports_errors(self):
        """try_load distinguishes ok, missing and failed reads."""
        backend = MemoryBackend()
        backend.set("bad", "][")
        store = EntityStore(backend)
        store.save("good", [1])

        assert store.try_load("good").is_ok
        missing = store.try_load("nothing")
        assert not missing.is_ok and missing.error is None
        failed = store.try_load("bad")
        assert isinstance(failed.error, StorageError)

    def test_unserializable_collection_raises_storage_error(self):
        """Values json cannot encode surface as StorageError."""
        store = EntityStore(MemoryBackend())
        with pytest.raises(StorageError):
            store.save("books", [object()])


class TestBackends:
    """Behaviour of the concrete backends."""

    def test_json_file_backend_persists_across_instances(self, tmp_path):
        """A second backend over the same directory sees earlier writes."""
        EntityStore(JsonFileBackend(tmp_path)).save("bookSummaryBooks", [{"id": "x"}])
        assert EntityStore(JsonFileBackend(tmp_path)).load("bookSummaryBooks", []) == [{"id": "x"}]

    def test_json_file_backend_remove(self, tmp_path):
        """Removing a key deletes its file."""
        backend = JsonFileBackend(tmp_path)
        backend.set("theme", "dark")
        backend.remove("theme")
        assert backend.get("theme") is None
        assert list(tmp_path.iterdir()) == []

    def test_namespaced_backend_isolates_prefixes(self):
        """Two namespaces over one backend do not see each other's keys."""
        shared = MemoryBackend()
        first = NamespacedBackend(shared, "session-a-")
        second = NamespacedBackend(shared, "session-b-")

        first.set("userLoggedIn", "true")
        assert first.get("userLoggedIn") == "true"
        assert second.get("userLoggedIn") is None
        assert shared.get("session-a-userLoggedIn") == "true"
