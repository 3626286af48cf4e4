"""Read API for monitor state and check history."""
from dataclasses import asdict
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..schemas.monitor import MonitorConfig
from ..schemas.status import CheckHistoryResponse, MonitorStateResponse
from ..services.runner import MonitorRunner
from ..services.state_tracker import CheckHistoryEntry, MonitorState
from ..services.store import MonitorStore

status_router = APIRouter(prefix="/api/status", tags=["status"])
monitors_router = APIRouter(prefix="/api/monitors", tags=["monitors"])


def get_store(request: Request) -> MonitorStore:
    return request.app.state.store


def get_runner(request: Request) -> MonitorRunner:
    return request.app.state.runner


def get_monitors(request: Request) -> Dict[str, MonitorConfig]:
    return request.app.state.monitors


def _state_response(state: MonitorState) -> MonitorStateResponse:
    data = asdict(state)
    data["status"] = state.status.value
    return MonitorStateResponse(**data)


def _history_response(entry: CheckHistoryEntry) -> CheckHistoryResponse:
    data = asdict(entry)
    data["status"] = entry.status.value
    return CheckHistoryResponse(**data)


@status_router.get("", response_model=List[MonitorStateResponse])
async def list_states(store: MonitorStore = Depends(get_store)):
    """Current state of every monitor that has been checked."""
    states = await store.get_all_monitor_states()
    return [_state_response(state) for state in states]


@status_router.get("/history", response_model=List[CheckHistoryResponse])
async def recent_history(
    limit: int = Query(60, ge=1, le=1000),
    store: MonitorStore = Depends(get_store),
):
    """Most recent checks of every monitor, oldest first."""
    entries = await store.get_recent_history(limit)
    return [_history_response(entry) for entry in entries]


@monitors_router.get("/{monitor_id}/state", response_model=MonitorStateResponse)
async def get_state(monitor_id: str, store: MonitorStore = Depends(get_store)):
    state = await store.get_monitor_state(monitor_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Monitor has not been checked")
    return _state_response(state)


@monitors_router.get("/{monitor_id}/history", response_model=List[CheckHistoryResponse])
async def get_history(
    monitor_id: str,
    limit: int = Query(50, ge=1, le=1000),
    store: MonitorStore = Depends(get_store),
):
    entries = await store.get_history(monitor_id, limit)
    return [_history_response(entry) for entry in entries]


@monitors_router.post("/{monitor_id}/check", response_model=MonitorStateResponse)
async def check_now(
    monitor_id: str,
    runner: MonitorRunner = Depends(get_runner),
    monitors: Dict[str, MonitorConfig] = Depends(get_monitors),
):
    """Run one check immediately and return the resulting state."""
    config = monitors.get(monitor_id)
    if config is None:
        raise HTTPException(status_code=404, detail="Monitor not found")
    state = await runner.run(config)
    return _state_response(state)
