"""Recurrence evaluation: trigger expression -> next fire instant.

Only the "every N minutes" form (``*/N * * * *``) is understood. Other
expressions are unsupported; plug in another ``RecurrenceStrategy`` to
widen the grammar.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

_EVERY_N_MINUTES = re.compile(r"^\*/(\d+)$")


class RecurrenceStrategy(ABC):
    """Contract: expression + current instant (ms) -> next instant (ms) or None."""

    @abstractmethod
    def supports(self, expression: str) -> bool:
        ...

    @abstractmethod
    def next_after(self, expression: str, now_ms: int) -> Optional[int]:
        """Earliest instant strictly after ``now_ms``; None if it never fires."""


class EveryNMinutes(RecurrenceStrategy):
    """``*/N * * * *``: the next minute boundary that is a multiple of N.

    Minutes are counted within the local hour, with seconds truncated. The
    hour rolls over when the next multiple reaches 60.
    """

    @staticmethod
    def interval(expression: str) -> Optional[int]:
        fields = expression.split()
        if not fields:
            return None
        match = _EVERY_N_MINUTES.match(fields[0])
        if not match:
            return None
        interval = int(match.group(1))
        if interval <= 0 or any(f != "*" for f in fields[1:]):
            return None
        return interval

    def supports(self, expression: str) -> bool:
        return self.interval(expression) is not None

    def next_after(self, expression: str, now_ms: int) -> Optional[int]:
        interval = self.interval(expression)
        if interval is None:
            return None

        now = datetime.fromtimestamp(now_ms / 1000)
        hour_start = now.replace(minute=0, second=0, microsecond=0)
        # ceil((minute + 1) / N) * N
        next_minute = -(-(now.minute + 1) // interval) * interval
        return int((hour_start + timedelta(minutes=next_minute)).timestamp() * 1000)


DEFAULT_STRATEGY: RecurrenceStrategy = EveryNMinutes()
