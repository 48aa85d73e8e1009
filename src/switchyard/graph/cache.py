"""Node-level result caching.

A node registered with a `CachePolicy` reuses its previous outcome when it runs again on an identical state
within the policy's time-to-live. The key is a hash of the state's canonical JSON encoding.
"""

import copy
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .node import NodeOutcome
from .state import State

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachePolicy:
    """How long a node's outcomes stay reusable.

    Attributes:
        ttl: Time-to-live of a cached outcome, in seconds.
    """

    ttl: float

    def __post_init__(self) -> None:
        """Validate the time-to-live."""
        if self.ttl <= 0:
            raise ValueError("cache ttl must be positive")


def state_key(state: State) -> str:
    """Return a stable hash of a state, independent of key order."""
    encoded = json.dumps(state, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class NodeCache:
    """Outcomes of cached nodes, keyed by node name and state hash."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty cache.

        Args:
            clock: Source of the current time in seconds.
        """
        self._clock = clock
        self._entries: dict[tuple[str, str], tuple[float, NodeOutcome]] = {}
        self._lock = threading.Lock()

    def get(self, node: str, state: State) -> Optional[NodeOutcome]:
        """Return a copy of the cached outcome of a node for this state, or None on a miss or expiry."""
        key = (node, state_key(state))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, outcome = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug("node=<%s> | cached outcome expired", node)
                return None

        return copy.deepcopy(outcome)

    def put(self, node: str, state: State, outcome: NodeOutcome, policy: CachePolicy) -> None:
        """Remember the outcome a node produced for this state."""
        key = (node, state_key(state))
        with self._lock:
            self._entries[key] = (self._clock() + policy.ttl, copy.deepcopy(outcome))

    def clear(self, node: Optional[str] = None) -> None:
        """Drop the cached outcomes of one node, or of every node."""
        with self._lock:
            if node is None:
                self._entries.clear()
            else:
                for key in [key for key in self._entries if key[0] == node]:
                    del self._entries[key]
