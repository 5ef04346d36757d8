"""
02_proactive_reminder.py - A scheduled task wakes the Agent while the user is away

Configured from DEEPSEEK_API_KEY / KIMI_API_KEY / OPENAI_API_KEY.
"""

import asyncio
from datetime import datetime, timedelta

from steward import EventKind, Steward, TaskAction, TaskCreate, TaskTrigger


def on_event(event):
    if event.kind == EventKind.TASK_TRIGGERED:
        print(f"[event] {event.task_name} fired")


async def main():
    async with Steward(on_event=on_event) as app:
        await app.schedule(TaskCreate(
            name="ping",
            trigger=TaskTrigger(at=(datetime.now() + timedelta(seconds=3)).isoformat()),
            action=TaskAction(prompt="Say pong."),
        ))

        print("User: Hi!")
        print(f"Agent: {await app.chat('Hi!')}")

        await asyncio.sleep(15)

        for m in app.agent.messages[1:]:
            print(f"[{m.role.value}] {m.content[:120]}")


if __name__ == "__main__":
    asyncio.run(main())
