"""Pydantic schemas for monitor configuration and API responses."""
from .monitor import MonitorConfig, ValidationRules, load_monitors
from .status import MonitorStateResponse, CheckHistoryResponse

__all__ = [
    "MonitorConfig",
    "ValidationRules",
    "load_monitors",
    "MonitorStateResponse",
    "CheckHistoryResponse",
]
