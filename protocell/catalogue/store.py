"""
Key-value stores behind the catalogue.

A store holds JSON-compatible records in named collections. Every failure
surfaces as ``PersistenceError``; the catalogue decides what to do about it.
"""

from __future__ import annotations

import hashlib
import json
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Union

from protocell.errors import PersistenceError

Record = Dict[str, Any]


class BlueprintStore(ABC):
    """Durable record store contract."""

    @abstractmethod
    def put(self, collection: str, key: str, record: Record) -> None:
        """Insert or replace ``record`` under ``key``."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> None:
        """Remove ``key``; missing keys are not an error."""

    @abstractmethod
    def get_all(self, collection: str) -> List[Record]:
        """Every record of ``collection`` (empty if it does not exist)."""

    @abstractmethod
    def clear(self, collection: str) -> None:
        """Remove every record of ``collection``."""


class InMemoryStore(BlueprintStore):
    """Dictionary-backed store. Records are copied through JSON on the way in."""

    def __init__(self):
        self._data: Dict[str, Dict[str, str]] = {}

    def put(self, collection: str, key: str, record: Record) -> None:
        try:
            encoded = json.dumps(record)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Record {key!r} is not JSON-serializable") from e
        self._data.setdefault(collection, {})[key] = encoded

    def delete(self, collection: str, key: str) -> None:
        self._data.get(collection, {}).pop(key, None)

    def get_all(self, collection: str) -> List[Record]:
        return [json.loads(v) for v in self._data.get(collection, {}).values()]

    def clear(self, collection: str) -> None:
        self._data.pop(collection, None)

    def keys(self, collection: str) -> List[str]:
        return list(self._data.get(collection, {}))


class JsonDirectoryStore(BlueprintStore):
    """
    One JSON file per record under ``<root>/<collection>/``.

    File names are hashes of the record key, since fingerprints contain
    characters that are not portable in paths.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _path(self, collection: str, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.root / collection / f"{digest}.json"

    def put(self, collection: str, key: str, record: Record) -> None:
        path = self._path(collection, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            with open(tmp, "w") as f:
                json.dump({"key": key, "record": record}, f, indent=2)
            tmp.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {collection}/{key}: {e}") from e

    def delete(self, collection: str, key: str) -> None:
        try:
            self._path(collection, key).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to delete {collection}/{key}: {e}") from e

    def get_all(self, collection: str) -> List[Record]:
        directory = self.root / collection
        if not directory.exists():
            return []
        records = []
        try:
            for path in sorted(directory.glob("*.json")):
                with open(path) as f:
                    records.append(json.load(f)["record"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Failed to read {collection}: {e}") from e
        return records

    def clear(self, collection: str) -> None:
        try:
            shutil.rmtree(self.root / collection, ignore_errors=False)
        except FileNotFoundError:
            return
        except OSError as e:
            raise PersistenceError(f"Failed to clear {collection}: {e}") from e
