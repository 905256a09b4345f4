# Overview: Flat-file JSON document store; one file per entity collection.

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

logger = logging.getLogger(__name__)

"""
Inventory Pro Storage Invariants (authoritative)

- Every collection is a whole JSON document: {"<key>": [...]}. There are no
  partial writes; callers read the full list, change it, write it back.
- Reads never raise. A missing, unreadable or malformed file reads as an
  empty collection and is logged.
- Writes go to a temp file in the same directory and are moved over the
  target with os.replace, so readers see the old or the new document only.
- Read-modify-write cycles that must not lose updates run inside
  FileStorage.locked(...), which holds one re-entrant lock per collection.
  Locks are process-local; separate processes writing the same directory
  are still last-writer-wins.
"""


@dataclass(frozen=True)
class Collection:
    name: str
    filename: str
    key: str


USERS = Collection("users", "users.json", "users")
INVENTORY = Collection("inventory", "inventory.json", "items")
SALES = Collection("sales", "sales.json", "sales")
LOSSES = Collection("losses", "losses.json", "losses")
STATS = Collection("stats", "stats.json", "stats")
SETTINGS = Collection("settings", "settings.json", "settings")
POPULARITY = Collection("popularity", "popularity.json", "popularity")
ACTIVITY_LOGS = Collection("activity_logs", "activity_logs.json", "logs")

COLLECTIONS: dict[str, Collection] = {
    c.name: c
    for c in (USERS, INVENTORY, SALES, LOSSES, STATS, SETTINGS, POPULARITY, ACTIVITY_LOGS)
}

# Singleton documents; everything else defaults to an empty list.
DEFAULT_DOCUMENTS: dict[str, Any] = {
    "stats": {"todaySales": 0, "todayRefunds": 0},
    "settings": [
        {
            "storeName": "Inventory Pro Store",
            "storeAddress": "123 Main Street, City, State, 12345",
            "storePhone": "(555) 123-4567",
            "thankYouMessage": "Thank you for shopping with us!",
            "nextTransactionId": 1,
        }
    ],
}


class StorageError(Exception):
    """Raised for storage misuse (unknown collection), never for I/O failures."""
    pass


def _resolve(collection: str | Collection) -> Collection:
    if isinstance(collection, Collection):
        return collection
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise StorageError(f"Unknown collection: {collection}")


def next_id(records: list[dict]) -> int:
    """max(existing integer ids) + 1; 1 for an empty collection."""
    ids = [r.get("id") for r in records if isinstance(r.get("id"), int) and not isinstance(r.get("id"), bool)]
    return max([0, *ids]) + 1


class FileStorage:
    """
    Whole-document JSON store rooted at `data_dir`.

    Instances are created once per application (see create_app) and passed
    to the service functions explicitly.
    """

    def __init__(self, data_dir: str):
        self.data_dir = os.path.abspath(data_dir)
        self._locks = {name: threading.RLock() for name in COLLECTIONS}

    def __repr__(self) -> str:
        return f"<FileStorage data_dir={self.data_dir!r}>"

    # -------------------------------------------------------------------------
    # Bootstrap
    # -------------------------------------------------------------------------

    def path_for(self, collection: str | Collection) -> str:
        return os.path.join(self.data_dir, _resolve(collection).filename)

    def ensure_data_files(self) -> list[str]:
        """
        Create the data directory and any missing collection file with its
        default content. Existing files are left untouched.

        Returns the filenames that were created.
        """
        os.makedirs(self.data_dir, exist_ok=True)
        created = []
        for coll in COLLECTIONS.values():
            path = self.path_for(coll)
            if os.path.exists(path):
                continue
            default = DEFAULT_DOCUMENTS.get(coll.name, [])
            if self._dump(path, {coll.key: default}):
                created.append(coll.filename)
                logger.info("Created data file %s", path)
        return created

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    @contextmanager
    def locked(self, *collections: str | Collection) -> Iterator["FileStorage"]:
        """
        Hold the locks of the given collections for a read-modify-write cycle.

        Locks are taken in name order so two operations touching overlapping
        collections cannot deadlock. Re-entrant: nested engine calls may lock
        a collection their caller already holds.
        """
        names = sorted({_resolve(c).name for c in collections})
        with ExitStack() as stack:
            for name in names:
                stack.enter_context(self._locks[name])
            yield self

    # -------------------------------------------------------------------------
    # Raw document I/O
    # -------------------------------------------------------------------------

    def _load(self, path: str) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            logger.warning("Data file missing: %s", path)
        except (OSError, ValueError) as exc:
            logger.error("Error reading %s: %s", path, exc)
        return None

    def _dump(self, path: str, document: Any) -> bool:
        directory = os.path.dirname(path)
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_path, path)
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error writing %s: %s", path, exc)
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_path)
            return False

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def read(self, collection: str | Collection) -> list[dict]:
        """Return the records of a collection; [] on any read failure."""
        coll = _resolve(collection)
        document = self._load(self.path_for(coll))
        if not isinstance(document, dict):
            if document is not None:
                logger.error("Malformed %s: expected an object", coll.filename)
            return []
        records = document.get(coll.key)
        if records is None:
            return []
        if isinstance(records, dict):
            # Singleton stored unwrapped ({"settings": {...}})
            return [records]
        if not isinstance(records, list):
            logger.error("Malformed %s: '%s' is not a list", coll.filename, coll.key)
            return []
        return [r for r in records if isinstance(r, dict)]

    def write(self, collection: str | Collection, records: list[dict]) -> bool:
        """Replace the whole collection. False (logged) on I/O failure."""
        coll = _resolve(collection)
        return self._dump(self.path_for(coll), {coll.key: list(records)})

    def read_object(self, collection: str | Collection) -> dict:
        """
        Read a singleton document.

        Tolerates {"stats": {...}}, {"settings": [{...}]}, {"settings": {...}}
        and a flat object without the wrapping key.
        """
        coll = _resolve(collection)
        document = self._load(self.path_for(coll))
        if not isinstance(document, dict):
            return {}
        inner = document.get(coll.key, document)
        if isinstance(inner, list):
            inner = inner[0] if inner and isinstance(inner[0], dict) else {}
        if not isinstance(inner, dict):
            return {}
        return dict(inner)

    def write_object(self, collection: str | Collection, obj: dict) -> bool:
        coll = _resolve(collection)
        payload: Any = [obj] if coll is SETTINGS else obj
        return self._dump(self.path_for(coll), {coll.key: payload})

    def clear(self) -> None:
        """Reset every collection to its default content."""
        for coll in COLLECTIONS.values():
            with self.locked(coll):
                self._dump(self.path_for(coll), {coll.key: DEFAULT_DOCUMENTS.get(coll.name, [])})
