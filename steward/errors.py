"""
Steward Errors - Exception taxonomy shared across the runtime

Transport failures and iteration-limit failures propagate out of the Agent
loop. Tool failures never do: they are turned into observation text.
"""

from typing import Optional


class StewardError(Exception):
    """Base class for all Steward errors"""


class ConfigError(StewardError):
    """Configuration is missing or invalid"""


class LLMError(StewardError):
    """Base class for completion client failures"""


class LLMTransportError(LLMError):
    """The completion call did not return a usable response"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MaxIterationsError(StewardError):
    """The reasoning loop hit its iteration bound without a final answer"""

    def __init__(self, max_iterations: int):
        super().__init__(f"Max iterations ({max_iterations}) reached")
        self.max_iterations = max_iterations


class TaskNotFoundError(StewardError, KeyError):
    """No task with the given id"""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id

    def __str__(self) -> str:
        return self.args[0]


class UnsupportedRecurrenceError(StewardError, ValueError):
    """A recurrence expression the active strategy cannot evaluate"""

    def __init__(self, expression: str):
        super().__init__(f"Unsupported recurrence expression: {expression!r}")
        self.expression = expression
