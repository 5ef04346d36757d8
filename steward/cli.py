"""
Steward command line.

    steward chat      interactive conversation (proactive tasks run in the background)
    steward schedule  create a task
    steward tasks     list tasks
    steward demo      end-to-end proactive demo
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime
from typing import List, Optional

from .app import Steward, _load_config
from .errors import StewardError
from .proactive.coordinator import DEFAULT_DATA_DIR
from .proactive.models import (
    EventKind,
    ProactiveEvent,
    TaskAction,
    TaskCreate,
    TaskKind,
    TaskTrigger,
    now_ms,
)
from .proactive.scheduler import Scheduler
from .proactive.store import PendingStore, ResultLog, TaskStore

logger = logging.getLogger(__name__)

CHAT_COMMANDS = {
    "/help": "Show available commands",
    "/clear": "Clear conversation history",
    "/history": "Show conversation history",
    "/quit": "Exit the chat",
    "/exit": "Exit the chat",
}


def _iso_in(seconds: float) -> str:
    return datetime.fromtimestamp((now_ms() + seconds * 1000) / 1000).astimezone().isoformat()


def _format_ms(ms: Optional[int]) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _open_scheduler(config_path: Optional[str]) -> Scheduler:
    """A Scheduler over the configured data dir, without an Agent or LLM."""
    cfg = _load_config(config_path) if config_path else {}
    data_dir = os.path.expanduser((cfg.get("proactive") or {}).get("data_dir", DEFAULT_DATA_DIR))
    return Scheduler(
        task_store=TaskStore(os.path.join(data_dir, "tasks")),
        pending_store=PendingStore(os.path.join(data_dir, "pending")),
        result_log=ResultLog(os.path.join(data_dir, "results")),
    )


def build_task_definition(args: argparse.Namespace) -> TaskCreate:
    """Turn ``steward schedule`` flags into a TaskCreate."""
    if args.cron:
        kind, trigger = TaskKind.RECURRING, TaskTrigger(cron=args.cron)
    elif args.at:
        kind, trigger = TaskKind.SCHEDULED, TaskTrigger(at=args.at)
    elif args.in_seconds is not None:
        kind, trigger = TaskKind.SCHEDULED, TaskTrigger(at=_iso_in(args.in_seconds))
    else:
        raise StewardError("Provide one of --in, --at or --cron")

    return TaskCreate(
        name=args.name or f"task-{now_ms()}",
        kind=kind,
        description=args.description,
        trigger=trigger,
        action=TaskAction(prompt=args.prompt),
        max_runs=args.max_runs,
    )


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------

async def cmd_schedule(args: argparse.Namespace) -> int:
    scheduler = _open_scheduler(args.config)
    await scheduler.init()
    task = await scheduler.create_task(build_task_definition(args))
    print(f"Scheduled {task.name} ({task.id}), next run {_format_ms(task.next_run)}")
    return 0


async def cmd_tasks(args: argparse.Namespace) -> int:
    scheduler = _open_scheduler(args.config)
    await scheduler.init()
    tasks = scheduler.list_tasks()
    if not tasks:
        print("No tasks.")
        return 0
    for task in sorted(tasks, key=lambda t: t.created_at):
        state = "on " if task.enabled else "off"
        trigger = task.trigger.cron or task.trigger.at or task.trigger.event or "-"
        print(
            f"{state} {task.id}  {task.name:<20} {task.kind.value:<9} {trigger:<26} "
            f"runs={task.run_count}  next={_format_ms(task.next_run)}"
        )
    return 0


async def cmd_chat(args: argparse.Namespace) -> int:
    app: Optional[Steward] = None

    def on_event(event: ProactiveEvent) -> None:
        if event.kind == EventKind.ITEM_PROCESSED and app is not None:
            last = app.agent.messages[-1]
            if last.role.value != "assistant":
                return
            print(f"\n[proactive: {event.task_name}] {last.content}\n> ", end="", flush=True)
        elif event.kind == EventKind.ITEM_PROCESSING_ERROR:
            print(f"\n[proactive: {event.task_name}] failed: {event.error}\n> ", end="", flush=True)

    app = Steward(args.config, on_event=on_event)
    await app.start()
    print("Chat started! Type /help for commands, /quit to exit.\n")

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            text = line.strip()
            if not text:
                continue

            if text.startswith("/"):
                if text in ("/quit", "/exit"):
                    break
                if text == "/clear":
                    app.clear_session()
                    print("Conversation cleared.\n")
                elif text == "/history":
                    _print_history(app)
                elif text == "/help":
                    for name, desc in CHAT_COMMANDS.items():
                        print(f"  {name:<12} {desc}")
                    print()
                else:
                    print(f"Unknown command: {text}. Type /help for available commands.\n")
                continue

            try:
                response = await app.chat(text)
            except StewardError as e:
                print(f"\nError: {e}\n")
                continue
            print(f"\n{response}\n")
    finally:
        await app.shutdown()
    return 0


def _print_history(app: Steward) -> None:
    history = [m for m in app.agent.messages if m.role.value in ("user", "assistant")]
    if not history:
        print("No messages yet.\n")
        return
    for i, m in enumerate(history, 1):
        preview = m.content[:50].replace("\n", " ")
        print(f"  {i}. {m.role.value:<9} {preview}")
    print()


async def cmd_demo(args: argparse.Namespace) -> int:
    """Schedule a task a few seconds out, talk to the Agent meanwhile, show the merged log."""
    app = Steward(args.config)
    await app.start()
    try:
        print("Scheduling a task to trigger in 5 seconds...\n")
        await app.schedule(TaskCreate(
            name="periodic-check",
            description="A demo proactive task",
            trigger=TaskTrigger(at=_iso_in(5)),
            action=TaskAction(
                prompt="Calculate 2 + 3, then multiply the result by 10. Tell me what you are doing."
            ),
        ))

        print("User: What is 10 + 5?")
        print(f"Agent: {await app.chat('What is 10 + 5?')}\n")

        print("Waiting for the proactive task to trigger...\n")
        await asyncio.sleep(args.wait)

        print(f"Tasks scheduled: {len(await app.list_tasks())}")
        print(f"Agent messages: {len(app.agent.messages)}\n")
        for m in app.agent.messages:
            if m.role.value == "system":
                continue
            print(f"[{m.role.value}] {m.content[:200]}")
    finally:
        await app.shutdown()
    return 0


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="steward", description="Agent runtime with proactive tasks")
    parser.add_argument("--config", "-c", default=None, help="YAML config file (default: configure from env)")
    parser.add_argument("--log-level", default=os.getenv("STEWARD_LOG_LEVEL", "WARNING"))
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("chat", help="Interactive chat")

    schedule = sub.add_parser("schedule", help="Create a task")
    schedule.add_argument("--name", default="")
    schedule.add_argument("--prompt", required=True, help="Text injected into the conversation")
    schedule.add_argument("--description", default=None)
    schedule.add_argument("--in", dest="in_seconds", type=float, help="Fire once, N seconds from now")
    schedule.add_argument("--at", help="Fire once at an ISO 8601 time")
    schedule.add_argument("--cron", help='Recurring, e.g. "*/5 * * * *"')
    schedule.add_argument("--max-runs", type=int, default=None)

    sub.add_parser("tasks", help="List tasks")

    demo = sub.add_parser("demo", help="End-to-end proactive demo")
    demo.add_argument("--wait", type=float, default=8.0, help="Seconds to wait for the task")
    return parser


_COMMANDS = {
    "chat": cmd_chat,
    "schedule": cmd_schedule,
    "tasks": cmd_tasks,
    "demo": cmd_demo,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s: %(name)s - %(message)s",
    )
    try:
        return asyncio.run(_COMMANDS[args.command](args))
    except KeyboardInterrupt:
        return 130
    except (StewardError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
