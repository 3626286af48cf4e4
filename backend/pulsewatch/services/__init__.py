"""Services for checking, state tracking, storage, and scheduling."""
from .checker import CheckExecutor, CheckResult, CheckStatus, CheckKind
from .state_tracker import MonitorState, CheckHistoryEntry, transition, history_entry
from .store import MonitorStore, StorageError
from .runner import MonitorRunner
from .scheduler import SchedulerService

__all__ = [
    "CheckExecutor",
    "CheckResult",
    "CheckStatus",
    "CheckKind",
    "MonitorState",
    "CheckHistoryEntry",
    "transition",
    "history_entry",
    "MonitorStore",
    "StorageError",
    "MonitorRunner",
    "SchedulerService",
]
