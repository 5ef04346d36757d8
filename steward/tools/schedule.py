"""schedule_reminder tool: lets the model set a one-shot reminder for the user."""

import logging
import time
from datetime import datetime
from typing import Any, Dict

from ..proactive.coordinator import ProactiveCoordinator
from ..proactive.models import TaskAction, TaskCreate, TaskKind, TaskTrigger, now_ms
from .models import ToolDefinition

logger = logging.getLogger(__name__)

SCHEDULE_TOOL_DESCRIPTION = """IMPORTANT: You MUST call this tool when the user asks you to remind them about something later.
Call this tool immediately when user says things like:
- "remind me in X minutes/hours" (e.g., "remind me in 5 minutes")
- "call me after X minutes"
- "notify me at X" (e.g., "notify me at 3pm")

DO NOT just say you will remind them. You MUST use this tool to actually schedule the reminder."""


def create_schedule_tool(coordinator: ProactiveCoordinator) -> ToolDefinition:
    """Build the schedule_reminder tool bound to ``coordinator``."""

    async def schedule_reminder(args: Dict[str, Any]) -> str:
        reminder_text = args.get("reminder_text")
        if not reminder_text:
            raise ValueError("Missing reminder_text")

        delay_minutes = args.get("delay_minutes")
        specific_time = args.get("specific_time")

        if delay_minutes is not None and float(delay_minutes) > 0:
            trigger_ms = now_ms() + int(float(delay_minutes) * 60 * 1000)
        elif specific_time:
            from dateutil import parser
            try:
                when = parser.parse(str(specific_time))
            except (ValueError, OverflowError):
                raise ValueError(f"Invalid specific_time: {specific_time}")
            if when.tzinfo is None:
                when = when.astimezone()
            trigger_ms = int(when.timestamp() * 1000)
        else:
            raise ValueError("Must provide either delay_minutes or specific_time")

        trigger_at = datetime.fromtimestamp(trigger_ms / 1000).astimezone()
        await coordinator.schedule(TaskCreate(
            name=f"reminder-{now_ms()}",
            kind=TaskKind.SCHEDULED,
            description=reminder_text,
            trigger=TaskTrigger(at=trigger_at.isoformat()),
            action=TaskAction(prompt=f"Reminder: {reminder_text}"),
        ))
        logger.info(f"[Tool] Reminder scheduled for {trigger_at.isoformat()}")

        delay_sec = round((trigger_ms - time.time() * 1000) / 1000)
        if delay_sec < 60:
            return f"Reminder set! I'll notify you in {delay_sec} seconds."
        if delay_sec < 3600:
            return f"Reminder set! I'll notify you in {round(delay_sec / 60)} minutes."
        return f"Reminder set! I'll notify you at {trigger_at.strftime('%Y-%m-%d %H:%M')}."

    return ToolDefinition(
        name="schedule_reminder",
        description=SCHEDULE_TOOL_DESCRIPTION,
        executor=schedule_reminder,
        parameters={
            "type": "object",
            "properties": {
                "delay_minutes": {
                    "type": "number",
                    "description": 'Number of minutes from now to wait before reminding. Examples: 5 for "5 minutes", 60 for "1 hour".',
                },
                "specific_time": {
                    "type": "string",
                    "description": 'Specific time in ISO 8601 format. Use this for absolute time like "3pm tomorrow".',
                },
                "reminder_text": {
                    "type": "string",
                    "description": 'What to remind the user about. Example: "take out the trash"',
                },
            },
            "required": ["reminder_text"],
        },
    )
