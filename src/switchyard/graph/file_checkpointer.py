"""Checkpointer that persists thread checkpoints as JSON files.

Layout:
    ```
    <storage_dir>/
    └── thread_<thread_id>/
        ├── checkpoint_000000.json
        ├── checkpoint_000001.json
        └── ...
    ```
"""

import json
import logging
import os
import re
import shutil
import tempfile
import threading
from typing import Any, Optional

from ..types.exceptions import CheckpointError
from .checkpoint import Checkpoint, Checkpointer

logger = logging.getLogger(__name__)

THREAD_PREFIX = "thread_"
CHECKPOINT_PREFIX = "checkpoint_"
_CHECKPOINT_FILE = re.compile(rf"^{CHECKPOINT_PREFIX}(\d+)\.json$")
_THREAD_ID = re.compile(r"^[a-zA-Z0-9_\-.]{1,128}$")


class FileCheckpointer(Checkpointer):
    """File system backed checkpointer."""

    def __init__(self, storage_dir: Optional[str] = None) -> None:
        """Initialize the checkpointer.

        Args:
            storage_dir: Directory for thread folders. Defaults to a "switchyard/checkpoints" folder under the
                system temp directory.
        """
        self.storage_dir = storage_dir or os.path.join(tempfile.gettempdir(), "switchyard", "checkpoints")
        os.makedirs(self.storage_dir, exist_ok=True)
        self._lock = threading.Lock()

    def _get_thread_path(self, thread_id: str) -> str:
        if not _THREAD_ID.match(thread_id) or thread_id in (".", ".."):
            raise ValueError(f"thread_id=<{thread_id}> | thread id cannot be used as a directory name")
        return os.path.join(self.storage_dir, f"{THREAD_PREFIX}{thread_id}")

    def _checkpoint_files(self, thread_path: str) -> list[tuple[int, str]]:
        if not os.path.isdir(thread_path):
            return []

        files = []
        for filename in os.listdir(thread_path):
            match = _CHECKPOINT_FILE.match(filename)
            if match:
                files.append((int(match.group(1)), os.path.join(thread_path, filename)))
        return sorted(files)

    def _read_file(self, path: str) -> dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise CheckpointError(f"Invalid JSON in file {path}: {str(e)}") from e

    def _write_file(self, path: str, data: dict[str, Any]) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp = f"{path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)

    async def put(self, checkpoint: Checkpoint) -> None:
        """Write a checkpoint as the next file of its thread."""
        thread_path = self._get_thread_path(checkpoint.thread_id)
        with self._lock:
            files = self._checkpoint_files(thread_path)
            index = files[-1][0] + 1 if files else 0
            path = os.path.join(thread_path, f"{CHECKPOINT_PREFIX}{index:06d}.json")
            self._write_file(path, checkpoint.to_dict())

        logger.debug("thread_id=<%s>, path=<%s> | saved checkpoint", checkpoint.thread_id, path)

    async def get_latest(self, thread_id: str) -> Optional[Checkpoint]:
        """Read the newest checkpoint file of a thread."""
        with self._lock:
            files = self._checkpoint_files(self._get_thread_path(thread_id))
            if not files:
                return None
            return Checkpoint.from_dict(self._read_file(files[-1][1]))

    async def delete_thread(self, thread_id: str) -> None:
        """Remove the thread directory and every checkpoint in it."""
        thread_path = self._get_thread_path(thread_id)
        with self._lock:
            if os.path.isdir(thread_path):
                shutil.rmtree(thread_path)

    async def list(self, thread_id: str) -> list[Checkpoint]:
        """Read every checkpoint of a thread, oldest first."""
        with self._lock:
            files = self._checkpoint_files(self._get_thread_path(thread_id))
            return [Checkpoint.from_dict(self._read_file(path)) for _, path in files]
