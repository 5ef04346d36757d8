"""FastAPI app creation, global state, and the proactive event broadcaster."""

import asyncio
import dataclasses
import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException

from ..app import Steward
from ..proactive.models import ProactiveEvent

logger = logging.getLogger(__name__)

_config_path = os.getenv("STEWARD_CONFIG", "config.yaml")

_app: Optional[Steward] = None


class EventBroadcaster:
    """Fans proactive events out to every connected SSE client."""

    def __init__(self, max_queue: int = 100):
        self._max_queue = max_queue
        self._clients: List[asyncio.Queue] = []

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue)
        self._clients.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._clients:
            self._clients.remove(queue)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def publish(self, event: ProactiveEvent) -> None:
        payload = dataclasses.asdict(event)
        payload["kind"] = event.kind.value
        for queue in list(self._clients):
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning("[Server] Dropping event for slow client")


broadcaster = EventBroadcaster()


def _try_load_app():
    """Load Steward from config if present, otherwise from environment variables."""
    global _app
    try:
        if os.path.exists(_config_path):
            _app = Steward(_config_path, on_event=broadcaster.publish)
            logger.info(f"Steward loaded from {_config_path}")
        else:
            _app = Steward(on_event=broadcaster.publish)
            logger.info("Steward configured from environment")
    except Exception as e:
        logger.warning(f"Failed to load config: {e}")
        _app = None


def require_app() -> Steward:
    """Raise 503 if app is not configured. Lazy-loads on first call."""
    global _app
    if _app is None:
        _try_load_app()
    if _app is None:
        raise HTTPException(503, "Not configured. Provide config.yaml or an API key env var.")
    return _app


def set_app(new_app: Optional[Steward]):
    """Set the global _app instance."""
    global _app
    _app = new_app


def get_app_instance() -> Optional[Steward]:
    return _app


@asynccontextmanager
async def _lifespan(_api: FastAPI):
    yield
    if _app is not None:
        await _app.shutdown()


def _create_api() -> FastAPI:
    """Create and configure the FastAPI app with routes."""
    _api = FastAPI(title="Steward", version="0.1.0", lifespan=_lifespan)

    from .routes import register_routes
    register_routes(_api)
    return _api


api = _create_api()
