"""Pydantic response models for the status API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class WatcherStatus(BaseModel):
    enabled: bool
    running: bool
    last_index: int = Field(ge=0)


class StatusResponse(BaseModel):
    version: str
    nomad_address: str
    watcher: WatcherStatus
    changes_recorded: int = Field(ge=0)


class JobChangeItem(BaseModel):
    job_name: str
    seen_at: datetime


class ChangesResponse(BaseModel):
    changes: list[JobChangeItem]
    total: int = Field(ge=0)
