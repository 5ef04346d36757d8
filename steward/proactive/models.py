"""Proactive task data models.

All timestamps are integer milliseconds since the epoch. Records serialize
to camelCase JSON and accept snake_case keys on load.
"""

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


def now_ms() -> int:
    """Current time in milliseconds."""
    return int(time.time() * 1000)


class TaskKind(str, Enum):
    SCHEDULED = "scheduled"  # one-shot at an absolute time
    RECURRING = "recurring"  # recurrence expression
    EVENT = "event"          # externally signalled


@dataclass
class TaskTrigger:
    """When a task fires."""
    at: Optional[str] = None    # ISO 8601 timestamp
    cron: Optional[str] = None  # recurrence expression
    event: Optional[str] = None  # e.g. "file-change", "git-commit", "http"
    event_data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.at:
            d["at"] = self.at
        if self.cron:
            d["cron"] = self.cron
        if self.event:
            d["event"] = self.event
        if self.event_data is not None:
            d["eventData"] = self.event_data
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TaskTrigger":
        return cls(
            at=d.get("at"),
            cron=d.get("cron"),
            event=d.get("event"),
            event_data=d.get("eventData", d.get("event_data")),
        )


@dataclass
class TaskAction:
    """What a firing injects into the Agent."""
    prompt: str = ""
    allowed_tools: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"prompt": self.prompt}
        if self.allowed_tools is not None:
            d["allowedTools"] = list(self.allowed_tools)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TaskAction":
        return cls(
            prompt=d.get("prompt", ""),
            allowed_tools=d.get("allowedTools", d.get("allowed_tools")),
        )


@dataclass
class TaskCreate:
    """Input for creating a task. The Scheduler assigns id, timestamps and run state."""
    name: str
    kind: TaskKind = TaskKind.SCHEDULED
    trigger: TaskTrigger = field(default_factory=TaskTrigger)
    action: TaskAction = field(default_factory=TaskAction)
    enabled: bool = True
    max_runs: Optional[int] = None
    description: Optional[str] = None

    def to_task(self, created_at_ms: Optional[int] = None) -> "Task":
        created = created_at_ms if created_at_ms is not None else now_ms()
        return Task(
            id=f"task-{created}-{uuid.uuid4().hex[:5]}",
            kind=self.kind,
            name=self.name,
            description=self.description,
            trigger=replace(
                self.trigger,
                event_data=dict(self.trigger.event_data) if self.trigger.event_data is not None else None,
            ),
            action=replace(
                self.action,
                allowed_tools=list(self.action.allowed_tools) if self.action.allowed_tools is not None else None,
            ),
            enabled=self.enabled,
            max_runs=self.max_runs,
            created_at=created,
        )


@dataclass
class Task:
    """A durable unit of proactive work, owned by the Scheduler."""
    id: str
    kind: TaskKind
    name: str = ""
    trigger: TaskTrigger = field(default_factory=TaskTrigger)
    action: TaskAction = field(default_factory=TaskAction)
    enabled: bool = True
    last_run: Optional[int] = None
    next_run: Optional[int] = None
    run_count: int = 0
    max_runs: Optional[int] = None
    created_at: int = 0
    description: Optional[str] = None

    @property
    def exhausted(self) -> bool:
        """True once run_count has reached max_runs."""
        return self.max_runs is not None and self.run_count >= self.max_runs

    def is_due(self, now: int) -> bool:
        return (
            self.enabled
            and not self.exhausted
            and self.next_run is not None
            and self.next_run <= now
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "name": self.name,
            "trigger": self.trigger.to_dict(),
            "action": self.action.to_dict(),
            "enabled": self.enabled,
            "runCount": self.run_count,
            "createdAt": self.created_at,
        }
        if self.last_run is not None:
            d["lastRun"] = self.last_run
        if self.next_run is not None:
            d["nextRun"] = self.next_run
        if self.max_runs is not None:
            d["maxRuns"] = self.max_runs
        if self.description:
            d["description"] = self.description
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Task":
        if not d.get("id"):
            raise ValueError("Task record has no id")
        return cls(
            id=d["id"],
            kind=TaskKind(d.get("type", d.get("kind", "scheduled"))),
            name=d.get("name", ""),
            trigger=TaskTrigger.from_dict(d.get("trigger") or {}),
            action=TaskAction.from_dict(d.get("action") or {}),
            enabled=d.get("enabled", True),
            last_run=d.get("lastRun", d.get("last_run")),
            next_run=d.get("nextRun", d.get("next_run")),
            run_count=d.get("runCount", d.get("run_count", 0)),
            # 0 in a stored record means no limit
            max_runs=d.get("maxRuns", d.get("max_runs")) or None,
            created_at=d.get("createdAt", d.get("created_at", 0)),
            description=d.get("description"),
        )


@dataclass
class PendingWorkItem:
    """Delivery envelope for one firing of a Task."""
    task_id: str
    task_name: str
    prompt: str
    timestamp: int
    allowed_tools: Optional[List[str]] = None

    @property
    def filename(self) -> str:
        """Unique, time-ordered record name: ``{task_id}-{timestamp}.json``."""
        return f"{self.task_id}-{self.timestamp}.json"

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "taskId": self.task_id,
            "taskName": self.task_name,
            "prompt": self.prompt,
            "timestamp": self.timestamp,
        }
        if self.allowed_tools is not None:
            d["allowedTools"] = list(self.allowed_tools)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PendingWorkItem":
        return cls(
            task_id=d["taskId"] if "taskId" in d else d["task_id"],
            task_name=d.get("taskName", d.get("task_name", "")),
            prompt=d.get("prompt", ""),
            timestamp=d.get("timestamp", 0),
            allowed_tools=d.get("allowedTools", d.get("allowed_tools")),
        )


@dataclass(frozen=True)
class TaskResult:
    """Outcome of one firing. Append-only."""
    task_id: str
    success: bool
    timestamp: int
    output: Optional[str] = None
    error: Optional[str] = None

    @property
    def filename(self) -> str:
        return f"{self.task_id}-{self.timestamp}.json"

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "taskId": self.task_id,
            "success": self.success,
            "timestamp": self.timestamp,
        }
        if self.output is not None:
            d["output"] = self.output
        if self.error is not None:
            d["error"] = self.error
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TaskResult":
        return cls(
            task_id=d.get("taskId", d.get("task_id", "")),
            success=bool(d.get("success", False)),
            timestamp=d.get("timestamp", 0),
            output=d.get("output"),
            error=d.get("error"),
        )


class EventKind(str, Enum):
    TASK_CREATED = "task-created"
    TASK_DELETED = "task-deleted"
    TASK_TOGGLED = "task-toggled"
    TASK_TRIGGERED = "task-triggered"
    ITEM_PROCESSED = "item-processed"
    ITEM_PROCESSING_ERROR = "item-processing-error"


@dataclass
class ProactiveEvent:
    """Event emitted by the Scheduler and Watcher for UI/notification layers."""
    kind: EventKind
    task_id: Optional[str] = None
    task_name: Optional[str] = None
    item_name: Optional[str] = None
    error: Optional[str] = None
    timestamp: int = field(default_factory=now_ms)
