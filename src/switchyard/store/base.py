"""Shared key-value store interface.

A store holds values under hierarchical namespaces (tuples of strings) and keys. Unlike checkpoints, store
entries are not tied to a thread, so nodes and tools of different runs can share them.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

Namespace = tuple[str, ...]


@dataclass
class Item:
    """A value held in a store.

    Attributes:
        namespace: Hierarchical namespace of the item.
        key: Key of the item within its namespace.
        value: The stored JSON-compatible value.
        created_at: ISO format timestamp of the first write.
        updated_at: ISO format timestamp of the last write.
        score: Relevance score for search results, when the store computes one.
    """

    namespace: Namespace
    key: str
    value: Any
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    score: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        data = asdict(self)
        data["namespace"] = list(self.namespace)
        return data


class BaseStore(ABC):
    """Abstract key-value store. Each operation is atomic with respect to the others."""

    @abstractmethod
    async def get(self, namespace: Namespace, key: str) -> Optional[Item]:
        """Return the item stored under a namespace and key, or None."""

    @abstractmethod
    async def put(self, namespace: Namespace, key: str, value: Any) -> None:
        """Insert or replace a value. Replacing keeps the original creation time."""

    @abstractmethod
    async def search(
        self, namespace_prefix: Namespace, query: Optional[str] = None, limit: int = 10, offset: int = 0
    ) -> list[Item]:
        """Return items whose namespace starts with the prefix, optionally filtered by a text query."""

    @abstractmethod
    async def delete(self, namespace: Namespace, key: str) -> None:
        """Delete an item. Deleting a missing item is a no-op."""

    @abstractmethod
    async def list_namespaces(self, prefix: Optional[Namespace] = None) -> list[Namespace]:
        """Return the namespaces holding at least one item, optionally restricted to a prefix."""
