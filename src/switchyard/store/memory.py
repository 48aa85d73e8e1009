"""In-memory store implementation."""

import copy
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from .base import BaseStore, Item, Namespace

logger = logging.getLogger(__name__)


def _validate_namespace(namespace: Namespace) -> Namespace:
    namespace = tuple(namespace)
    if not namespace:
        raise ValueError("namespace cannot be empty")
    for label in namespace:
        if not isinstance(label, str) or not label:
            raise ValueError(f"namespace=<{namespace}> | namespace labels must be non-empty strings")
        if "." in label:
            raise ValueError(f"namespace=<{namespace}> | namespace labels cannot contain periods")
    return namespace


class InMemoryStore(BaseStore):
    """Store that keeps items in process memory.

    Search matches namespaces by prefix and, when a query is given, keeps items whose JSON-encoded value contains
    the query, ignoring case. Results are ordered by namespace, then key.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._data: dict[Namespace, dict[str, Item]] = {}
        self._lock = threading.Lock()

    async def get(self, namespace: Namespace, key: str) -> Optional[Item]:
        """Return a copy of the item, or None."""
        namespace = _validate_namespace(namespace)
        with self._lock:
            item = self._data.get(namespace, {}).get(key)
            return copy.deepcopy(item) if item else None

    async def put(self, namespace: Namespace, key: str, value: Any) -> None:
        """Insert or replace an item."""
        namespace = _validate_namespace(namespace)
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            items = self._data.setdefault(namespace, {})
            existing = items.get(key)
            created_at = existing.created_at if existing else now
            items[key] = Item(
                namespace=namespace, key=key, value=copy.deepcopy(value), created_at=created_at, updated_at=now
            )

        logger.debug("namespace=<%s>, key=<%s> | stored item", namespace, key)

    async def search(
        self, namespace_prefix: Namespace, query: Optional[str] = None, limit: int = 10, offset: int = 0
    ) -> list[Item]:
        """Return matching items in namespace then key order."""
        prefix = tuple(namespace_prefix)
        needle = query.lower() if query else None
        with self._lock:
            matches = []
            for namespace in sorted(self._data):
                if namespace[: len(prefix)] != prefix:
                    continue
                for key in sorted(self._data[namespace]):
                    item = self._data[namespace][key]
                    if needle is not None:
                        text = json.dumps(item.value, default=str, ensure_ascii=False)
                        if needle not in text.lower():
                            continue
                    matches.append(copy.deepcopy(item))
        return matches[offset : offset + limit]

    async def delete(self, namespace: Namespace, key: str) -> None:
        """Delete an item if present."""
        namespace = _validate_namespace(namespace)
        with self._lock:
            items = self._data.get(namespace)
            if items is None or key not in items:
                return
            del items[key]
            if not items:
                del self._data[namespace]

    async def list_namespaces(self, prefix: Optional[Namespace] = None) -> list[Namespace]:
        """Return sorted namespaces that hold items."""
        prefix = tuple(prefix or ())
        with self._lock:
            return sorted(namespace for namespace in self._data if namespace[: len(prefix)] == prefix)
