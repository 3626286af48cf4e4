"""State tracker - turns a stream of check results into a debounced state.

Pure functions only: the caller reads the previous state from storage,
calls transition(), and writes the returned state back.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .checker import CheckResult, CheckStatus

# Statuses that extend a failure streak. DEGRADED counts the same as DOWN,
# so fail_count is the length of the current run of non-UP results.
FAILURE_STATUSES = frozenset({CheckStatus.DEGRADED, CheckStatus.DOWN})


@dataclass(frozen=True)
class MonitorState:
    """Persisted state of one monitor.

    first_fail_time is set iff fail_count > 0, and fail_count is 0 iff the
    status is UP.
    """
    monitor_id: str
    status: CheckStatus
    last_checked_at: datetime
    last_latency: int
    fail_count: int = 0
    first_fail_time: Optional[datetime] = None
    last_error: Optional[str] = None


@dataclass(frozen=True)
class CheckHistoryEntry:
    """Verbatim snapshot of one check result."""
    monitor_id: str
    timestamp: datetime
    status: CheckStatus
    latency: int
    message: Optional[str]


def is_failure(status: CheckStatus) -> bool:
    return status in FAILURE_STATUSES


def transition(
    monitor_id: str,
    previous: Optional[MonitorState],
    result: CheckResult,
    now: datetime,
) -> MonitorState:
    """Compute the next state from the previous one and a fresh result."""
    if not is_failure(result.status):
        return MonitorState(
            monitor_id=monitor_id,
            status=result.status,
            last_checked_at=now,
            last_latency=result.latency,
        )

    if previous is None or not is_failure(previous.status):
        # Streak starts now
        fail_count = 1
        first_fail_time = now
    else:
        fail_count = previous.fail_count + 1
        first_fail_time = previous.first_fail_time or now

    return MonitorState(
        monitor_id=monitor_id,
        status=result.status,
        last_checked_at=now,
        last_latency=result.latency,
        fail_count=fail_count,
        first_fail_time=first_fail_time,
        last_error=result.message,
    )


def history_entry(monitor_id: str, result: CheckResult, now: datetime) -> CheckHistoryEntry:
    return CheckHistoryEntry(
        monitor_id=monitor_id,
        timestamp=now,
        status=result.status,
        latency=result.latency,
        message=result.message,
    )
