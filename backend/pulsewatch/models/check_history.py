"""CheckHistoryRecord model - append-only log of check results."""
from sqlalchemy import Column, Integer, String, DateTime, Index

from ..database import Base


class CheckHistoryRecord(Base):
    """Snapshot of a single check result."""

    __tablename__ = "check_history"
    __table_args__ = (
        Index("idx_check_history_monitor_ts", "monitor_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    status = Column(String, nullable=False)
    latency = Column(Integer, nullable=False, default=0)  # ms
    message = Column(String, nullable=True)
