"""State and history schemas for the read API."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class MonitorStateResponse(BaseModel):
    """Current debounced state of a monitor."""
    monitor_id: str
    status: str  # UP, DEGRADED, DOWN
    last_checked_at: datetime
    last_latency: int
    fail_count: int
    first_fail_time: Optional[datetime] = None
    last_error: Optional[str] = None

    class Config:
        from_attributes = True


class CheckHistoryResponse(BaseModel):
    """One entry of the check history log."""
    monitor_id: str
    timestamp: datetime
    status: str
    latency: int
    message: Optional[str] = None

    class Config:
        from_attributes = True
