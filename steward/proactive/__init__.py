"""Proactive task pipeline: Scheduler -> Pending Work Items -> Watcher -> Agent."""

from .coordinator import ProactiveCoordinator, format_proactive_message
from .models import (
    EventKind,
    PendingWorkItem,
    ProactiveEvent,
    Task,
    TaskAction,
    TaskCreate,
    TaskKind,
    TaskResult,
    TaskTrigger,
    now_ms,
)
from .recurrence import DEFAULT_STRATEGY, EveryNMinutes, RecurrenceStrategy
from .scheduler import Scheduler, parse_iso_to_ms
from .store import PendingStore, ResultLog, TaskStore
from .watcher import PendingWatcher

__all__ = [
    "ProactiveCoordinator",
    "format_proactive_message",
    "Scheduler",
    "parse_iso_to_ms",
    "PendingWatcher",
    "TaskStore",
    "PendingStore",
    "ResultLog",
    "RecurrenceStrategy",
    "EveryNMinutes",
    "DEFAULT_STRATEGY",
    "Task",
    "TaskCreate",
    "TaskKind",
    "TaskTrigger",
    "TaskAction",
    "TaskResult",
    "PendingWorkItem",
    "ProactiveEvent",
    "EventKind",
    "now_ms",
]
