"""MonitorStateRecord model - current debounced state, one row per monitor."""
from sqlalchemy import Column, Integer, String, DateTime

from ..database import Base


class MonitorStateRecord(Base):
    """Latest computed state for a monitor."""

    __tablename__ = "monitors_state"

    monitor_id = Column(String, primary_key=True)
    status = Column(String, nullable=False)  # UP, DEGRADED, DOWN
    last_checked_at = Column(DateTime, nullable=False)
    last_latency = Column(Integer, nullable=False, default=0)  # ms
    fail_count = Column(Integer, nullable=False, default=0)
    first_fail_time = Column(DateTime, nullable=True)  # NULL while UP
    last_error = Column(String, nullable=True)  # NULL while UP
