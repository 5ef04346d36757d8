"""
ProactiveCoordinator - wires Scheduler, Watcher and an Agent together.

This is the one place that decides how a Pending Work Item becomes Agent
input: a synthetic user message is steered into the conversation, and an
idle Agent is woken with ``continue_()``.
"""

import logging
import os
from typing import Callable, List, Optional

from ..agent.models import Message
from ..protocols import SteerableAgent
from .models import PendingWorkItem, ProactiveEvent, Task, TaskCreate, TaskResult, now_ms
from .recurrence import RecurrenceStrategy
from .scheduler import DEFAULT_TICK_SECONDS, Scheduler
from .store import PendingStore, ResultLog, TaskStore
from .watcher import DEFAULT_SCAN_SECONDS, PendingWatcher

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = ".steward/proactive"


def format_proactive_message(item: PendingWorkItem) -> Message:
    """Build the user-role message that carries a firing into the conversation."""
    return Message.user(
        f"[Proactive Task: {item.task_name}]\n{item.prompt}",
        source="proactive",
        task_id=item.task_id,
        allowed_tools=item.allowed_tools,
    )


class ProactiveCoordinator:
    """
    Owns the proactive pipeline for one Agent.

    Example:
        coordinator = ProactiveCoordinator(agent, data_dir="~/.steward/proactive")
        await coordinator.init()
        await coordinator.schedule(TaskCreate(name="ping", trigger=TaskTrigger(at=iso)))
        ...
        await coordinator.stop()
    """

    def __init__(
        self,
        agent: SteerableAgent,
        data_dir: str = DEFAULT_DATA_DIR,
        auto_start: bool = True,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        scan_seconds: float = DEFAULT_SCAN_SECONDS,
        strategy: Optional[RecurrenceStrategy] = None,
        on_event: Optional[Callable[[ProactiveEvent], None]] = None,
    ):
        self.agent = agent
        self.auto_start = auto_start
        root = os.path.expanduser(data_dir)

        self.pending_store = PendingStore(os.path.join(root, "pending"))
        self.scheduler = Scheduler(
            task_store=TaskStore(os.path.join(root, "tasks")),
            pending_store=self.pending_store,
            result_log=ResultLog(os.path.join(root, "results")),
            tick_seconds=tick_seconds,
            strategy=strategy,
            on_event=on_event,
        )
        self.watcher = PendingWatcher(
            store=self.pending_store,
            handler=self.handle_pending_item,
            scan_interval=scan_seconds,
            on_event=on_event,
        )

    async def init(self) -> None:
        """Load tasks and, when auto_start is set, arm scheduler and watcher."""
        await self.scheduler.init()
        if self.auto_start:
            await self.start()

    async def start(self) -> None:
        await self.scheduler.start()
        await self.watcher.start()
        logger.info("[Proactive] Started")

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.watcher.stop()
        logger.info("[Proactive] Stopped")

    async def schedule(self, definition: TaskCreate) -> Task:
        return await self.scheduler.create_task(definition)

    def list_tasks(self) -> List[Task]:
        return self.scheduler.list_tasks()

    async def handle_pending_item(self, item: PendingWorkItem) -> None:
        """Steer the item into the Agent, wake it once idle, and record the outcome.

        A failure inside the woken loop is recorded as an unsuccessful
        result and not re-raised, since the message is already in the
        conversation and redelivery would duplicate it.
        """
        logger.info(f"[Proactive] Delivering task: {item.task_name}")
        self.agent.steer(format_proactive_message(item))

        if not self.agent.is_idle():
            # The running loop may finish without reaching the queue again
            logger.info("[Proactive] Agent busy; waiting for it to go idle")
            await self.agent.wait_until_idle()

        try:
            output = await self.agent.continue_()
        except Exception as e:
            logger.error(f"[Proactive] Task {item.task_name} failed: {e}", exc_info=True)
            await self.scheduler.record_result(TaskResult(
                task_id=item.task_id, success=False, timestamp=now_ms(),
                error=str(e) or type(e).__name__,
            ))
            return

        await self.scheduler.record_result(TaskResult(
            task_id=item.task_id, success=True, timestamp=now_ms(), output=output or None,
        ))
