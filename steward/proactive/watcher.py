"""Watcher - delivers Pending Work Items to a handler, at most once per process.

Items are discovered two ways: an immediate notification from the
PendingStore whenever an item is written in-process, and a periodic
rescan of the directory that also picks up items left by a previous run
or written by another process.
"""

import asyncio
import logging
from typing import Callable, Optional, Set

from ..protocols import PendingItemHandler
from .models import EventKind, ProactiveEvent
from .store import PendingStore

logger = logging.getLogger(__name__)

DEFAULT_SCAN_SECONDS = 5.0


class PendingWatcher:
    """Hands each pending item to ``handler`` and deletes it on success.

    A name is claimed (added to the in-flight set) before the first await,
    so overlapping deliveries of the same name collapse into one. A handler
    failure leaves the item on disk for the next scan to retry.
    """

    def __init__(
        self,
        store: PendingStore,
        handler: PendingItemHandler,
        scan_interval: float = DEFAULT_SCAN_SECONDS,
        on_event: Optional[Callable[[ProactiveEvent], None]] = None,
    ):
        self._store = store
        self._handler = handler
        self._scan_interval = scan_interval
        self._on_event = on_event
        self._processing: Set[str] = set()
        self._done: Set[str] = set()
        self._scan_task: Optional[asyncio.Task] = None
        self._spawned: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._scan_task is not None

    async def start(self) -> None:
        if self._scan_task is not None:
            return
        self._store.ensure_dir()
        await self.scan()
        self._store.subscribe(self._on_item_written)
        self._scan_task = asyncio.create_task(self._scan_loop())
        logger.info(f"[Watcher] Watching {self._store.directory}")

    async def stop(self) -> None:
        self._store.unsubscribe(self._on_item_written)
        if self._scan_task is not None:
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass
            self._scan_task = None
        for task in list(self._spawned):
            task.cancel()
        self._spawned.clear()
        logger.info("[Watcher] Stopped")

    async def scan(self) -> int:
        """Process every item currently on disk. Returns how many were handled."""
        names = self._store.list_names()
        present = set(names)
        self._done &= present

        handled = 0
        for name in names:
            if await self.process(name):
                handled += 1
        return handled

    async def process(self, name: str) -> bool:
        """Deliver one item. Returns True if the handler ran successfully."""
        if name in self._processing or name in self._done:
            return False
        self._processing.add(name)
        try:
            try:
                item = await self._store.read(name)
            except FileNotFoundError:
                self._done.add(name)
                return False
            except (ValueError, KeyError, TypeError) as e:
                # Left on disk for inspection; skipped for the rest of this process
                logger.error(f"[Watcher] Unreadable pending item {name}: {e}")
                self._done.add(name)
                self._emit(ProactiveEvent(
                    kind=EventKind.ITEM_PROCESSING_ERROR, item_name=name, error=str(e),
                ))
                return False

            logger.info(f"[Watcher] Processing pending item: {name}")
            try:
                await self._handler(item)
            except Exception as e:
                logger.error(f"[Watcher] Failed to process {name}: {e}", exc_info=True)
                self._emit(ProactiveEvent(
                    kind=EventKind.ITEM_PROCESSING_ERROR, task_id=item.task_id,
                    task_name=item.task_name, item_name=name, error=str(e),
                ))
                return False

            self._done.add(name)
            await self._store.delete(name)
            self._emit(ProactiveEvent(
                kind=EventKind.ITEM_PROCESSED, task_id=item.task_id,
                task_name=item.task_name, item_name=name,
            ))
            return True
        finally:
            self._processing.discard(name)

    def _on_item_written(self, name: str) -> None:
        task = asyncio.get_running_loop().create_task(self._process_safely(name))
        self._spawned.add(task)
        task.add_done_callback(self._spawned.discard)

    async def _process_safely(self, name: str) -> None:
        try:
            await self.process(name)
        except Exception as e:
            logger.error(f"[Watcher] Error processing {name}: {e}", exc_info=True)

    async def _scan_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._scan_interval)
                await self.scan()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"[Watcher] Scan error: {e}", exc_info=True)
                await asyncio.sleep(1)

    def _emit(self, event: ProactiveEvent) -> None:
        if self._on_event:
            try:
                self._on_event(event)
            except Exception as e:
                logger.debug(f"Event handler error: {e}")
