"""Scheduler - durable task set plus a fixed-period tick that fires due tasks.

Each firing advances the task's run bookkeeping, persists it, and writes
one Pending Work Item for the Watcher to deliver.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..errors import TaskNotFoundError, UnsupportedRecurrenceError
from .models import (
    EventKind,
    PendingWorkItem,
    ProactiveEvent,
    Task,
    TaskCreate,
    TaskKind,
    TaskResult,
    now_ms,
)
from .recurrence import DEFAULT_STRATEGY, RecurrenceStrategy
from .store import PendingStore, ResultLog, TaskStore

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 10.0


def parse_iso_to_ms(iso_str: str) -> int:
    """Parse an ISO 8601 timestamp to epoch ms. Naive timestamps are local time."""
    text = iso_str.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Invalid ISO timestamp: {iso_str!r}") from e
    return int(dt.timestamp() * 1000)


class Scheduler:
    """Owns Tasks and turns due ones into Pending Work Items.

    Usage:
        scheduler = Scheduler(TaskStore(".steward/proactive/tasks"),
                              PendingStore(".steward/proactive/pending"),
                              ResultLog(".steward/proactive/results"))
        await scheduler.init()
        await scheduler.create_task(TaskCreate(name="ping", trigger=TaskTrigger(at="...")))
        await scheduler.start()
    """

    def __init__(
        self,
        task_store: TaskStore,
        pending_store: PendingStore,
        result_log: ResultLog,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        strategy: Optional[RecurrenceStrategy] = None,
        on_event: Optional[Callable[[ProactiveEvent], None]] = None,
    ):
        self._task_store = task_store
        self._pending_store = pending_store
        self._result_log = result_log
        self._tick_seconds = tick_seconds
        self._strategy = strategy or DEFAULT_STRATEGY
        self._on_event = on_event
        self._tasks: Dict[str, Task] = {}
        self._loop_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Create storage directories and load persisted tasks."""
        for store in (self._task_store, self._pending_store, self._result_log):
            store.ensure_dir()

        self._tasks = await self._task_store.load_all()
        for task in self._tasks.values():
            if task.trigger.cron and not self._strategy.supports(task.trigger.cron):
                task.next_run = None
                logger.warning(
                    f"[Scheduler] Task {task.id} has unsupported recurrence "
                    f"{task.trigger.cron!r}; it will not fire"
                )
        logger.info(f"[Scheduler] Loaded {len(self._tasks)} tasks")

    @property
    def running(self) -> bool:
        return self._loop_task is not None

    async def start(self) -> None:
        """Arm the periodic tick. No-op if already started."""
        if self._loop_task is not None:
            return
        self._loop_task = asyncio.create_task(self._timer_loop())
        logger.info(f"[Scheduler] Started (tick every {self._tick_seconds:g}s)")

    async def stop(self) -> None:
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        try:
            await self._loop_task
        except asyncio.CancelledError:
            pass
        self._loop_task = None
        logger.info("[Scheduler] Stopped")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_task(self, definition: TaskCreate) -> Task:
        """Assign id and creation time, compute the first next_run, persist.

        Raises:
            UnsupportedRecurrenceError: the recurrence expression cannot be evaluated.
            ValueError: the trigger timestamp is not valid ISO 8601, or max_runs < 1.
        """
        trigger = definition.trigger
        if trigger.cron and not self._strategy.supports(trigger.cron):
            raise UnsupportedRecurrenceError(trigger.cron)
        if definition.kind == TaskKind.RECURRING and not trigger.cron:
            raise ValueError("Recurring task requires a recurrence expression")
        if definition.max_runs is not None and definition.max_runs < 1:
            raise ValueError(f"max_runs must be at least 1, got {definition.max_runs}")

        now = now_ms()
        task = definition.to_task(created_at_ms=now)
        if trigger.at:
            task.next_run = parse_iso_to_ms(trigger.at)
        elif trigger.cron:
            task.next_run = self._strategy.next_after(trigger.cron, now)

        await self._task_store.save(task)
        self._tasks[task.id] = task

        logger.info(f"[Scheduler] Task created: {task.name} ({task.id})")
        self._emit(ProactiveEvent(kind=EventKind.TASK_CREATED, task_id=task.id, task_name=task.name))
        return task

    def list_tasks(self) -> List[Task]:
        return list(self._tasks.values())

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task. Returns False if it did not exist."""
        task = self._tasks.pop(task_id, None)
        removed = await self._task_store.delete(task_id)
        if task is None and not removed:
            return False
        logger.info(f"[Scheduler] Task deleted: {task_id}")
        self._emit(ProactiveEvent(
            kind=EventKind.TASK_DELETED, task_id=task_id,
            task_name=task.name if task else None,
        ))
        return True

    async def toggle_task(self, task_id: str, enabled: bool) -> Task:
        """Enable or disable a task.

        Re-enabling a recurring task whose next_run has passed re-arms it
        from now rather than firing for the missed window.
        """
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        task.enabled = enabled
        if enabled and task.kind == TaskKind.RECURRING and task.trigger.cron and not task.exhausted:
            now = now_ms()
            if task.next_run is None or task.next_run <= now:
                task.next_run = self._strategy.next_after(task.trigger.cron, now)

        await self._task_store.save(task)
        logger.info(f"[Scheduler] Task {task_id} {'enabled' if enabled else 'disabled'}")
        self._emit(ProactiveEvent(kind=EventKind.TASK_TOGGLED, task_id=task.id, task_name=task.name))
        return task

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    async def record_result(self, result: TaskResult) -> None:
        await self._result_log.append(result)

    async def get_results(self, task_id: Optional[str] = None, limit: int = 20) -> List[TaskResult]:
        return await self._result_log.list(task_id=task_id, limit=limit)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self, now: Optional[int] = None) -> List[PendingWorkItem]:
        """Fire every due task once. Returns the items written."""
        now = now if now is not None else now_ms()
        fired: List[PendingWorkItem] = []
        for task in list(self._tasks.values()):
            if not task.is_due(now):
                continue
            fired.append(await self._fire(task, now))
        return fired

    async def _fire(self, task: Task, now: int) -> PendingWorkItem:
        logger.info(f"[Scheduler] Triggering task: {task.name}")

        task.last_run = now
        task.run_count += 1
        if task.kind == TaskKind.RECURRING and task.trigger.cron and not task.exhausted:
            task.next_run = self._strategy.next_after(task.trigger.cron, now)
        else:
            task.next_run = None

        await self._task_store.save(task)

        item = PendingWorkItem(
            task_id=task.id,
            task_name=task.name,
            prompt=task.action.prompt,
            timestamp=now,
            allowed_tools=task.action.allowed_tools,
        )
        await self._pending_store.write(item)

        self._emit(ProactiveEvent(
            kind=EventKind.TASK_TRIGGERED, task_id=task.id,
            task_name=task.name, item_name=item.filename,
        ))
        return item

    async def _timer_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._tick_seconds)
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"[Scheduler] Tick error: {e}", exc_info=True)

    def _emit(self, event: ProactiveEvent) -> None:
        if self._on_event:
            try:
                self._on_event(event)
            except Exception as e:
                logger.debug(f"Event handler error: {e}")
