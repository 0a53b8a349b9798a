"""Read-only status routes."""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from nomadops.api.schemas import (
    ChangesResponse,
    HealthResponse,
    JobChangeItem,
    StatusResponse,
    WatcherStatus,
)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    from nomadops import __version__

    return HealthResponse(version=__version__)


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    from nomadops import __version__

    state = request.app.state
    watcher = state.watcher
    return StatusResponse(
        version=__version__,
        nomad_address=state.nomad_address,
        watcher=WatcherStatus(
            enabled=watcher is not None,
            running=bool(watcher is not None and watcher.running),
            last_index=watcher.last_index if watcher is not None else 0,
        ),
        changes_recorded=state.change_log.total,
    )


@router.get("/changes", response_model=ChangesResponse)
async def changes(request: Request, limit: int = Query(default=50, ge=1, le=500)) -> ChangesResponse:
    change_log = request.app.state.change_log
    return ChangesResponse(
        changes=[JobChangeItem(job_name=c.job_name, seen_at=c.seen_at) for c in change_log.recent(limit)],
        total=change_log.total,
    )
