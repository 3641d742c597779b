"""
Unit tests for the file-backed document store.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from app.store import (
    DocumentStore,
    InvalidKeyError,
    RecordExistsError,
    RecordNotFoundError,
    StoreError,
)


class TestCreateAndRead:
    def test_create_then_read(self, store: DocumentStore):
        store.create("users", "15551234567", {"firstName": "A", "checks": []})

        assert store.read("users", "15551234567") == {"firstName": "A", "checks": []}
        assert store.exists("users", "15551234567")

    def test_second_create_conflicts_and_keeps_first(self, store: DocumentStore):
        store.create("users", "k1", {"v": 1})

        with pytest.raises(RecordExistsError):
            store.create("users", "k1", {"v": 2})

        assert store.read("users", "k1") == {"v": 1}

    def test_file_is_compact_json_without_trailing_newline(self, store: DocumentStore):
        store.create("tokens", "abc", {"a": 1, "b": [1, 2]})

        path = store.base_dir / "tokens" / "abc.json"
        assert path.read_bytes() == b'{"a":1,"b":[1,2]}'

    def test_read_returns_independent_copy(self, store: DocumentStore):
        store.create("users", "k1", {"checks": []})

        first = store.read("users", "k1")
        first["checks"].append("x")

        assert store.read("users", "k1") == {"checks": []}

    def test_read_missing_raises_not_found(self, store: DocumentStore):
        with pytest.raises(RecordNotFoundError):
            store.read("users", "nobody")

    def test_corrupt_record_is_store_error_not_missing(self, store: DocumentStore):
        (store.base_dir / "users").mkdir(parents=True)
        (store.base_dir / "users" / "broken.json").write_text("not json")

        with pytest.raises(StoreError) as exc_info:
            store.read("users", "broken")
        assert not isinstance(exc_info.value, RecordNotFoundError)

    def test_non_object_record_rejected(self, store: DocumentStore):
        with pytest.raises(StoreError):
            store.create("users", "k1", ["not", "an", "object"])  # type: ignore[arg-type]
        assert not store.exists("users", "k1")

    def test_unserializable_record_writes_nothing(self, store: DocumentStore):
        with pytest.raises(StoreError):
            store.create("users", "k1", {"when": object()})

        assert not store.exists("users", "k1")
        assert store.list_keys("users") == []


class TestUpdateAndDelete:
    def test_update_replaces_record(self, store: DocumentStore):
        store.create("users", "k1", {"v": 1, "old": True})
        store.update("users", "k1", {"v": 2})

        assert store.read("users", "k1") == {"v": 2}

    def test_update_does_not_upsert(self, store: DocumentStore):
        with pytest.raises(RecordNotFoundError):
            store.update("users", "ghost", {"v": 1})
        assert not store.exists("users", "ghost")

    def test_delete(self, store: DocumentStore):
        store.create("checks", "c1", {})
        store.delete("checks", "c1")

        assert not store.exists("checks", "c1")
        with pytest.raises(RecordNotFoundError):
            store.delete("checks", "c1")

    def test_no_temp_files_left_behind(self, store: DocumentStore):
        store.create("users", "k1", {"v": 1})
        store.update("users", "k1", {"v": 2})
        with pytest.raises(RecordExistsError):
            store.create("users", "k1", {"v": 3})

        leftovers = [p.name for p in (store.base_dir / "users").iterdir()]
        assert leftovers == ["k1.json"]


class TestKeys:
    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden", "has space", "x" * 200, "k1\n"])
    def test_unsafe_keys_rejected(self, store: DocumentStore, key: str):
        with pytest.raises(InvalidKeyError):
            store.create("users", key, {})

    @pytest.mark.parametrize("collection", ["../users", "Users", "", "a/b", "users\n"])
    def test_unsafe_collections_rejected(self, store: DocumentStore, collection: str):
        with pytest.raises(InvalidKeyError):
            store.read(collection, "k1")

    def test_exists_never_raises(self, store: DocumentStore):
        assert store.exists("users", "../../etc/passwd") is False
        assert store.exists("Bad Collection", "k1") is False
        assert store.exists("users", None) is False  # type: ignore[arg-type]

    def test_list_keys(self, store: DocumentStore):
        assert store.list_keys("checks") == []

        store.create("checks", "b", {})
        store.create("checks", "a", {})
        (store.base_dir / "checks" / ".pending.tmp").write_text("{}")

        assert store.list_keys("checks") == ["a", "b"]

    def test_ensure_collections(self, store: DocumentStore):
        store.ensure_collections("users", "tokens")

        assert (store.base_dir / "users").is_dir()
        assert (store.base_dir / "tokens").is_dir()


def test_concurrent_creates_have_exactly_one_winner(store: DocumentStore):
    def attempt(i: int):
        try:
            store.create("users", "contended", {"writer": i})
        except RecordExistsError:
            return None
        return i

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(attempt, range(16)))

    winners = [r for r in results if r is not None]
    assert len(winners) == 1
    assert store.read("users", "contended") == {"writer": winners[0]}
