"""
Key-value persistence for the storefront.

Everything the app remembers lives under a handful of string keys holding
JSON text (``users``, ``products``, ``orders``, ``currentUser``,
``cart_<username>``, ``cart_guest``, ``lastOrder``). Two backends are
provided: an in-process dict and a MongoDB collection of ``{_id, value}``
documents. ``Storage`` wraps either one and never lets a storage problem
reach the caller.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pymongo import MongoClient

from config import DATABASE_NAME, DATABASE_URL, STORAGE_BACKEND, STORE_COLLECTION, STORE_QUOTA
from errors import QuotaExceededError

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------------
# Backends
# ----------------------------------------------------------------------------

class KeyValueStore:
    """String-to-string store with the browser ``localStorage`` surface."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Dict-backed store. ``quota`` caps the total size in characters (0 = unlimited)."""

    def __init__(self, quota: int = 0):
        self.quota = quota
        self._items: Dict[str, str] = {}

    def _usage(self, skip: Optional[str] = None) -> int:
        return sum(len(k) + len(v) for k, v in self._items.items() if k != skip)

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota and self._usage(skip=key) + len(key) + len(value) > self.quota:
            raise QuotaExceededError(f"Writing {key!r} exceeds the {self.quota} character quota")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)


class MongoStore(KeyValueStore):
    """One document per key in a MongoDB collection."""

    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_url(cls, url: str = DATABASE_URL, name: str = DATABASE_NAME, collection: str = STORE_COLLECTION):
        client = MongoClient(url)
        return cls(client[name][collection])

    def get_item(self, key: str) -> Optional[str]:
        doc = self.collection.find_one({"_id": key})
        return doc["value"] if doc else None

    def set_item(self, key: str, value: str) -> None:
        self.collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)

    def remove_item(self, key: str) -> None:
        self.collection.delete_one({"_id": key})

    def keys(self) -> List[str]:
        return [doc["_id"] for doc in self.collection.find({}, {"_id": 1})]


def create_store(backend: str = STORAGE_BACKEND) -> KeyValueStore:
    if backend == "mongo":
        return MongoStore.from_url()
    if backend == "memory":
        return MemoryStore(quota=STORE_QUOTA)
    raise ValueError(f"Unknown storage backend: {backend}")


# ----------------------------------------------------------------------------
# Safe JSON adapter
# ----------------------------------------------------------------------------

class Storage:
    """
    JSON load/save over a ``KeyValueStore``.

    ``save`` reports failure by returning False and keeps the previous value.
    ``load`` returns None for missing keys and for corrupt entries, which it
    deletes so the next save starts clean.
    """

    def __init__(self, backend: KeyValueStore):
        self.backend = backend

    def save(self, key: str, value: Any) -> bool:
        try:
            text = json.dumps(value, allow_nan=False)
            self.backend.set_item(key, text)
        except Exception as e:
            logger.warning("Error saving %r to storage: %s", key, e)
            return False
        return True

    def load(self, key: str) -> Any:
        try:
            data = self.backend.get_item(key)
        except Exception as e:
            logger.warning("Error reading %r from storage: %s", key, e)
            return None
        if not data:
            return None
        try:
            return json.loads(data)
        except ValueError as e:
            logger.warning("Error loading %r from storage, removing corrupt entry: %s", key, e)
            self.remove(key)
            return None

    def remove(self, key: str) -> None:
        try:
            self.backend.remove_item(key)
        except Exception as e:
            logger.warning("Error removing %r from storage: %s", key, e)
