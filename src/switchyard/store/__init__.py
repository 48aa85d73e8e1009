"""Shared key-value stores for cross-thread memory."""

from .base import BaseStore, Item, Namespace
from .memory import InMemoryStore

__all__ = ["BaseStore", "InMemoryStore", "Item", "Namespace"]
