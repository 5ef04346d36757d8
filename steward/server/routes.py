"""Chat, task and event-stream routes."""

import asyncio
import json
from datetime import datetime

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse

from ..errors import TaskNotFoundError, UnsupportedRecurrenceError
from ..proactive.models import TaskAction, TaskCreate, TaskKind, TaskTrigger, now_ms
from .app import broadcaster, require_app
from .models import ChatRequest, ChatResponse, TaskCreateRequest, TaskUpdateRequest

router = APIRouter()

SSE_KEEPALIVE_SECONDS = 15.0


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest):
    app = require_app()
    response = await app.chat(req.message)
    return ChatResponse(response=response)


@router.post("/api/clear-session")
async def clear_session():
    """Clear conversation history."""
    app = require_app()
    app.clear_session()
    return {"status": "ok"}


@router.get("/api/messages")
async def list_messages():
    app = require_app()
    await app.start()
    return [m.to_openai() for m in app.agent.messages]


# ── Tasks ──

@router.get("/api/tasks")
async def list_tasks():
    app = require_app()
    return [t.to_dict() for t in await app.list_tasks()]


@router.post("/api/tasks")
async def create_task(req: TaskCreateRequest):
    """Create a one-shot (delay_seconds / at) or recurring (cron) task."""
    app = require_app()

    if req.cron:
        kind = TaskKind.RECURRING
        trigger = TaskTrigger(cron=req.cron)
    elif req.at:
        kind = TaskKind.SCHEDULED
        trigger = TaskTrigger(at=req.at)
    elif req.delay_seconds is not None and req.delay_seconds > 0:
        kind = TaskKind.SCHEDULED
        at_ms = now_ms() + int(req.delay_seconds * 1000)
        trigger = TaskTrigger(at=datetime.fromtimestamp(at_ms / 1000).astimezone().isoformat())
    else:
        raise HTTPException(400, "Provide one of: delay_seconds, at, cron")

    definition = TaskCreate(
        name=req.name or f"task-{now_ms()}",
        kind=kind,
        description=req.description,
        trigger=trigger,
        action=TaskAction(prompt=req.prompt, allowed_tools=req.allowed_tools),
        max_runs=req.max_runs,
    )
    try:
        task = await app.schedule(definition)
    except (UnsupportedRecurrenceError, ValueError) as e:
        raise HTTPException(400, str(e))
    return task.to_dict()


@router.patch("/api/tasks/{task_id}")
async def update_task(task_id: str, req: TaskUpdateRequest):
    app = require_app()
    await app.start()
    try:
        task = await app.proactive.scheduler.toggle_task(task_id, req.enabled)
    except TaskNotFoundError:
        raise HTTPException(404, f"Task not found: {task_id}")
    return task.to_dict()


@router.delete("/api/tasks/{task_id}")
async def delete_task(task_id: str):
    app = require_app()
    await app.start()
    if not await app.proactive.scheduler.delete_task(task_id):
        raise HTTPException(404, f"Task not found: {task_id}")
    return {"status": "deleted"}


@router.get("/api/tasks/{task_id}/results")
async def task_results(task_id: str, limit: int = 20):
    app = require_app()
    await app.start()
    results = await app.proactive.scheduler.get_results(task_id=task_id, limit=limit)
    return [r.to_dict() for r in results]


# ── Proactive event stream ──

@router.get("/api/events")
async def events(request: Request):
    """Server-Sent Events stream of proactive events."""
    queue = broadcaster.subscribe()

    async def event_generator():
        try:
            yield 'data: {"kind": "connected"}\n\n'
            while True:
                if await request.is_disconnected():
                    break
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=SSE_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
        finally:
            broadcaster.unsubscribe(queue)

    return StreamingResponse(event_generator(), media_type="text/event-stream")


def register_routes(app: FastAPI):
    app.include_router(router)
