"""Pydantic request/response models for the Steward API."""

from typing import List, Optional

from pydantic import BaseModel


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    response: str


class TaskCreateRequest(BaseModel):
    name: str = ""
    description: Optional[str] = None
    prompt: str
    delay_seconds: Optional[float] = None  # one-shot, relative
    at: Optional[str] = None               # one-shot, ISO 8601
    cron: Optional[str] = None             # recurring, "*/N * * * *"
    max_runs: Optional[int] = None
    allowed_tools: Optional[List[str]] = None


class TaskUpdateRequest(BaseModel):
    enabled: bool
