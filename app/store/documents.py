"""Key-addressed JSON document store.

Each record lives at ``<base_dir>/<collection>/<key>.json`` and holds the
compact JSON serialization of one object. There is no locking: ``create`` is
exclusive (first writer wins) and ``update`` replaces a record that must
already exist, last writer wins.

Writes go to a hidden temp file in the collection directory first, so a
reader only ever sees a fully written record:

- ``create`` hard-links the temp file into place; the link fails if the name
  is taken, which makes the existence check and the commit a single step.
- ``update`` renames the temp file over the existing record.
"""
from __future__ import annotations

import contextlib
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from ..logging_conf import get_logger

__all__ = [
    "StoreError",
    "InvalidKeyError",
    "RecordExistsError",
    "RecordNotFoundError",
    "DocumentStore",
]

logger = get_logger("store")

_COLLECTION_RE = re.compile(r"[a-z][a-z0-9_]*")
_KEY_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]{0,127}")
_SUFFIX = ".json"


class StoreError(Exception):
    """Base class for document store failures (I/O, corrupt data, bad keys)."""


class InvalidKeyError(StoreError, ValueError):
    """Collection or key is not a safe file name."""


class RecordExistsError(StoreError):
    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"{collection}/{key} already exists")
        self.collection = collection
        self.key = key


class RecordNotFoundError(StoreError):
    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"{collection}/{key} does not exist")
        self.collection = collection
        self.key = key


class DocumentStore:
    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir)

    # ------------------------
    # Paths & encoding
    # ------------------------

    def _collection_dir(self, collection: str) -> Path:
        if not isinstance(collection, str) or not _COLLECTION_RE.fullmatch(collection):
            raise InvalidKeyError(f"invalid collection name: {collection!r}")
        return self.base_dir / collection

    def _path(self, collection: str, key: str) -> Path:
        directory = self._collection_dir(collection)
        if not isinstance(key, str) or not _KEY_RE.fullmatch(key):
            raise InvalidKeyError(f"invalid key for {collection}: {key!r}")
        return directory / f"{key}{_SUFFIX}"

    @staticmethod
    def _encode(record: dict[str, Any]) -> bytes:
        if not isinstance(record, dict):
            raise StoreError("records must be JSON objects")
        try:
            return json.dumps(record, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise StoreError(f"record is not JSON serializable: {e}") from e

    @staticmethod
    def _write_temp(directory: Path, data: bytes) -> Path:
        """Write ``data`` to a durable temp file inside ``directory``."""
        directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(dir=directory, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(name)
            raise
        return Path(name)

    # ------------------------
    # Operations
    # ------------------------

    def exists(self, collection: str, key: str) -> bool:
        """True if a committed record is present. Never raises."""
        try:
            return self._path(collection, key).is_file()
        except (StoreError, OSError):
            return False

    def create(self, collection: str, key: str, record: dict[str, Any]) -> None:
        """Store a new record; raise ``RecordExistsError`` if the key is taken."""
        path = self._path(collection, key)
        data = self._encode(record)
        try:
            tmp = self._write_temp(path.parent, data)
        except OSError as e:
            raise StoreError(f"could not write {collection}/{key}: {e}") from e
        try:
            os.link(tmp, path)
        except FileExistsError as e:
            raise RecordExistsError(collection, key) from e
        except OSError as e:
            raise StoreError(f"could not create {collection}/{key}: {e}") from e
        finally:
            with contextlib.suppress(OSError):
                tmp.unlink()
        logger.debug("store.create", extra={"event": "store_create", "collection": collection})

    def read(self, collection: str, key: str) -> dict[str, Any]:
        """Return a freshly decoded copy of the record."""
        path = self._path(collection, key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise RecordNotFoundError(collection, key) from e
        except OSError as e:
            raise StoreError(f"could not read {collection}/{key}: {e}") from e
        try:
            record = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StoreError(f"{collection}/{key} is not valid JSON") from e
        if not isinstance(record, dict):
            raise StoreError(f"{collection}/{key} is not a JSON object")
        return record

    def update(self, collection: str, key: str, record: dict[str, Any]) -> None:
        """Replace an existing record; raise ``RecordNotFoundError`` if absent."""
        path = self._path(collection, key)
        data = self._encode(record)
        if not path.is_file():
            raise RecordNotFoundError(collection, key)
        try:
            tmp = self._write_temp(path.parent, data)
        except OSError as e:
            raise StoreError(f"could not write {collection}/{key}: {e}") from e
        try:
            os.replace(tmp, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StoreError(f"could not update {collection}/{key}: {e}") from e
        logger.debug("store.update", extra={"event": "store_update", "collection": collection})

    def delete(self, collection: str, key: str) -> None:
        path = self._path(collection, key)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise RecordNotFoundError(collection, key) from e
        except OSError as e:
            raise StoreError(f"could not delete {collection}/{key}: {e}") from e
        logger.debug("store.delete", extra={"event": "store_delete", "collection": collection})

    def list_keys(self, collection: str) -> list[str]:
        """Sorted keys of the committed records in ``collection``."""
        directory = self._collection_dir(collection)
        try:
            names = [p.name for p in directory.iterdir() if p.is_file()]
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StoreError(f"could not list {collection}: {e}") from e
        keys = [n[: -len(_SUFFIX)] for n in names if n.endswith(_SUFFIX) and not n.startswith(".")]
        return sorted(k for k in keys if _KEY_RE.fullmatch(k))

    def ensure_collections(self, *collections: str) -> None:
        for name in collections:
            try:
                self._collection_dir(name).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreError(f"could not create collection {name}: {e}") from e
