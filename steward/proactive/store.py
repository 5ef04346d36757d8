"""Directory-backed JSON persistence: one file per record.

Writes are atomic (temp file in the same directory, then rename) so a
reader scanning the directory never sees a half-written record.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .models import PendingWorkItem, Task, TaskResult

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"


def _safe_name(name: str) -> str:
    """Prevent directory traversal through record names."""
    return name.replace("/", "_").replace("\\", "_").replace("..", "_")


class JsonDirectoryStore:
    """Base class: JSON records stored as ``{directory}/{name}.json``."""

    def __init__(self, directory: str):
        self._dir = Path(os.path.expanduser(directory))

    @property
    def directory(self) -> Path:
        return self._dir

    def ensure_dir(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        filename = _safe_name(filename)
        if not filename.endswith(RECORD_SUFFIX):
            filename += RECORD_SUFFIX
        return self._dir / filename

    def list_names(self) -> List[str]:
        """Record filenames, sorted (names embed timestamps, so this is time order)."""
        if not self._dir.exists():
            return []
        return sorted(
            p.name for p in self._dir.iterdir()
            if p.name.endswith(RECORD_SUFFIX) and not p.name.startswith(".")
        )

    def _write_json(self, filename: str, data: Dict[str, Any]) -> Path:
        self.ensure_dir()
        path = self.path_for(filename)
        content = json.dumps(data, indent=2, ensure_ascii=False)

        fd, tmp_path = tempfile.mkstemp(prefix=".rec-", suffix=".tmp", dir=str(self._dir))
        try:
            try:
                os.write(fd, content.encode("utf-8"))
            finally:
                os.close(fd)
            os.replace(tmp_path, str(path))
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise
        return path

    def _read_json(self, filename: str) -> Dict[str, Any]:
        with open(self.path_for(filename), "r", encoding="utf-8") as f:
            return json.load(f)

    def _delete(self, filename: str) -> bool:
        """Remove a record. Returns False if it was already gone."""
        try:
            self.path_for(filename).unlink()
        except FileNotFoundError:
            return False
        return True


class TaskStore(JsonDirectoryStore):
    """Tasks persisted 1:1 as ``{task_id}.json``."""

    async def load_all(self) -> Dict[str, Task]:
        """Load every task; a record that fails to parse is logged and skipped."""
        tasks: Dict[str, Task] = {}
        for name in self.list_names():
            try:
                task = Task.from_dict(self._read_json(name))
            except Exception as e:
                logger.error(f"[Scheduler] Failed to load task {name}: {e}")
                continue
            tasks[task.id] = task
        return tasks

    async def save(self, task: Task) -> None:
        self._write_json(task.id, task.to_dict())

    async def delete(self, task_id: str) -> bool:
        return self._delete(task_id)


class PendingStore(JsonDirectoryStore):
    """Pending Work Items, one file per firing, named ``{task_id}-{timestamp}.json``.

    Subscribers are told the filename of every item written through this
    store. Items written by another process are only found by scanning.
    """

    def __init__(self, directory: str):
        super().__init__(directory)
        self._listeners: List[Callable[[str], None]] = []

    def subscribe(self, listener: Callable[[str], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[str], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def write(self, item: PendingWorkItem) -> str:
        self._write_json(item.filename, item.to_dict())
        for listener in list(self._listeners):
            try:
                listener(item.filename)
            except Exception as e:
                logger.debug(f"Pending listener error: {e}")
        return item.filename

    async def read(self, filename: str) -> PendingWorkItem:
        """Raises FileNotFoundError if the item no longer exists."""
        return PendingWorkItem.from_dict(self._read_json(filename))

    async def delete(self, filename: str) -> bool:
        """Delete an item; an already-missing item returns False, other errors propagate."""
        return self._delete(filename)

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).exists()


class ResultLog(JsonDirectoryStore):
    """Task Results, append-only, ``{task_id}-{timestamp}.json``."""

    async def append(self, result: TaskResult) -> str:
        """Write a new record; never overwrites an existing one."""
        filename = result.filename
        suffix = 1
        while self.path_for(filename).exists():
            filename = f"{result.task_id}-{result.timestamp}-{suffix}{RECORD_SUFFIX}"
            suffix += 1
        self._write_json(filename, result.to_dict())
        return filename

    async def list(self, task_id: Optional[str] = None, limit: Optional[int] = None) -> List[TaskResult]:
        """Results, newest first, optionally for one task."""
        results: List[TaskResult] = []
        for name in self.list_names():
            try:
                result = TaskResult.from_dict(self._read_json(name))
            except Exception as e:
                logger.warning(f"[Scheduler] Skipping unreadable result {name}: {e}")
                continue
            if task_id is None or result.task_id == task_id:
                results.append(result)
        results.sort(key=lambda r: r.timestamp, reverse=True)
        return results[:limit] if limit is not None else results
