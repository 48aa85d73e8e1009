"""Checkpoint persistence for graph threads.

A checkpoint is a snapshot of a thread after a step: the merged state plus where execution resumes. Checkpointers
are append-only per thread. The latest checkpoint is the authoritative one; earlier ones form the history.
"""

import base64
import copy
import inspect
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ..interrupt import Interrupt
from .state import State

logger = logging.getLogger(__name__)


def encode_bytes_values(obj: Any) -> Any:
    """Recursively encode any bytes values in an object to base64.

    Handles dictionaries, lists, and nested structures.
    """
    if isinstance(obj, bytes):
        return {"__bytes_encoded__": True, "data": base64.b64encode(obj).decode()}
    elif isinstance(obj, dict):
        return {k: encode_bytes_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [encode_bytes_values(item) for item in obj]
    else:
        return obj


def decode_bytes_values(obj: Any) -> Any:
    """Recursively decode any base64-encoded bytes values in an object."""
    if isinstance(obj, dict):
        if obj.get("__bytes_encoded__") is True and "data" in obj:
            return base64.b64decode(obj["data"])
        return {k: decode_bytes_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [decode_bytes_values(item) for item in obj]
    else:
        return obj


@dataclass
class Checkpoint:
    """A persisted snapshot of one thread.

    Attributes:
        thread_id: Thread the checkpoint belongs to.
        step: Number of node invocations the thread had completed when the checkpoint was taken.
        state: The merged workflow state.
        next_node: Node to run on resume. `END` when the run finished, None when an explicit node interrupt
            left the route unresolved.
        source: Node that produced the checkpoint, or "input" / "update" for caller-driven writes.
        interrupt: The pending interrupt, if the run is paused.
        checkpoint_id: Unique identifier.
        created_at: ISO format timestamp for when the checkpoint was created.
        metadata: Free-form values supplied by the run.
    """

    thread_id: str
    step: int
    state: State
    next_node: Optional[str]
    source: str
    interrupt: Optional[Interrupt] = None
    checkpoint_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict, base64 encoding bytes values."""
        data = asdict(self)
        data["state"] = encode_bytes_values(data["state"])
        data["interrupt"] = encode_bytes_values(self.interrupt.to_dict()) if self.interrupt else None
        data["metadata"] = encode_bytes_values(data["metadata"])
        return data

    @classmethod
    def from_dict(cls, env: dict[str, Any]) -> "Checkpoint":
        """Initialize a Checkpoint from a dictionary, ignoring keys that are not class parameters."""
        params = {k: v for k, v in env.items() if k in inspect.signature(cls).parameters}
        params["state"] = decode_bytes_values(params.get("state", {}))
        params["metadata"] = decode_bytes_values(params.get("metadata", {}))
        if params.get("interrupt") is not None:
            params["interrupt"] = Interrupt.from_dict(decode_bytes_values(params["interrupt"]))
        return cls(**params)


class Checkpointer(ABC):
    """Abstract persistence for thread checkpoints.

    Implementations must give read-your-writes per thread: a checkpoint returned by `put` is visible to the next
    `get_latest` for that thread.
    """

    @abstractmethod
    async def put(self, checkpoint: Checkpoint) -> None:
        """Persist a checkpoint as the newest one of its thread."""

    @abstractmethod
    async def get_latest(self, thread_id: str) -> Optional[Checkpoint]:
        """Return the newest checkpoint of a thread, or None if the thread has none."""

    @abstractmethod
    async def delete_thread(self, thread_id: str) -> None:
        """Delete every checkpoint of a thread. Deleting an unknown thread is a no-op."""

    @abstractmethod
    async def list(self, thread_id: str) -> list[Checkpoint]:
        """Return every checkpoint of a thread, oldest first."""


class InMemoryCheckpointer(Checkpointer):
    """Checkpointer that keeps checkpoints in process memory.

    Checkpoints are deep-copied on the way in and out so callers cannot alter stored snapshots.
    """

    def __init__(self) -> None:
        """Initialize an empty checkpointer."""
        self._threads: dict[str, list[Checkpoint]] = {}
        self._lock = threading.Lock()

    async def put(self, checkpoint: Checkpoint) -> None:
        """Append a checkpoint to its thread."""
        with self._lock:
            self._threads.setdefault(checkpoint.thread_id, []).append(copy.deepcopy(checkpoint))

        logger.debug(
            "thread_id=<%s>, step=<%s>, next_node=<%s> | saved checkpoint",
            checkpoint.thread_id,
            checkpoint.step,
            checkpoint.next_node,
        )

    async def get_latest(self, thread_id: str) -> Optional[Checkpoint]:
        """Return the newest checkpoint of a thread."""
        with self._lock:
            checkpoints = self._threads.get(thread_id)
            return copy.deepcopy(checkpoints[-1]) if checkpoints else None

    async def delete_thread(self, thread_id: str) -> None:
        """Drop every checkpoint of a thread."""
        with self._lock:
            self._threads.pop(thread_id, None)

    async def list(self, thread_id: str) -> list[Checkpoint]:
        """Return every checkpoint of a thread, oldest first."""
        with self._lock:
            return copy.deepcopy(self._threads.get(thread_id, []))
