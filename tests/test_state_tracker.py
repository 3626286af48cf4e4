"""Tests for state transitions and history snapshots."""
from __future__ import annotations

from datetime import datetime, timedelta

from conftest import DEGRADED, DOWN, UP
from pulsewatch.services.checker import CheckStatus
from pulsewatch.services.state_tracker import (
    CheckHistoryEntry,
    MonitorState,
    history_entry,
    is_failure,
    transition,
)

T1 = datetime(2025, 1, 1, 12, 0, 0)
T2 = T1 + timedelta(minutes=1)
T3 = T1 + timedelta(minutes=2)


def up_state(at: datetime = T1) -> MonitorState:
    return MonitorState(monitor_id="api", status=CheckStatus.UP, last_checked_at=at, last_latency=40)


class TestFirstCheck:
    def test_up(self) -> None:
        state = transition("api", None, UP, T1)
        assert state.status == CheckStatus.UP
        assert state.fail_count == 0
        assert state.first_fail_time is None
        assert state.last_error is None

    def test_down(self) -> None:
        state = transition("api", None, DOWN, T1)
        assert state.status == CheckStatus.DOWN
        assert state.fail_count == 1
        assert state.first_fail_time == T1
        assert state.last_error == "Timeout"


class TestTransitions:
    def test_up_stays_up(self) -> None:
        state = transition("api", up_state(), UP, T2)
        assert state.fail_count == 0
        assert state.first_fail_time is None
        assert state.last_checked_at == T2
        assert state.last_latency == UP.latency

    def test_failures_accumulate(self) -> None:
        first = transition("api", None, DOWN, T1)
        second = transition("api", first, DOWN, T2)
        assert second.fail_count == 2
        assert second.first_fail_time == T1
        assert second.last_checked_at == T2

    def test_streak_starts_after_up(self) -> None:
        state = transition("api", up_state(), DOWN, T2)
        assert state.fail_count == 1
        assert state.first_fail_time == T2

    def test_recovery_resets(self) -> None:
        previous = MonitorState(
            monitor_id="api",
            status=CheckStatus.DOWN,
            last_checked_at=T2,
            last_latency=1000,
            fail_count=3,
            first_fail_time=T1,
            last_error="Timeout",
        )
        state = transition("api", previous, UP, T3)
        assert state.status == CheckStatus.UP
        assert state.fail_count == 0
        assert state.first_fail_time is None
        assert state.last_error is None

    def test_degraded_counts_as_failure(self) -> None:
        first = transition("api", up_state(), DEGRADED, T2)
        second = transition("api", first, DOWN, T3)
        assert first.status == CheckStatus.DEGRADED
        assert first.fail_count == 1
        assert first.last_error == "High latency"
        assert second.status == CheckStatus.DOWN
        assert second.fail_count == 2
        assert second.first_fail_time == T2

    def test_missing_onset_falls_back_to_now(self) -> None:
        previous = MonitorState(
            monitor_id="api",
            status=CheckStatus.DOWN,
            last_checked_at=T1,
            last_latency=0,
            fail_count=2,
        )
        state = transition("api", previous, DOWN, T2)
        assert state.fail_count == 3
        assert state.first_fail_time == T2

    def test_invariants_hold_over_sequence(self) -> None:
        state = None
        results = [UP, DOWN, DEGRADED, DOWN, UP, DEGRADED, UP]
        for i, result in enumerate(results):
            state = transition("api", state, result, T1 + timedelta(minutes=i))
            assert (state.first_fail_time is not None) == (state.fail_count > 0)
            assert (state.fail_count == 0) == (state.status == CheckStatus.UP)
            assert (state.last_error is None) == (state.status == CheckStatus.UP)


def test_is_failure() -> None:
    assert not is_failure(CheckStatus.UP)
    assert is_failure(CheckStatus.DEGRADED)
    assert is_failure(CheckStatus.DOWN)


def test_history_entry_copies_result() -> None:
    entry = history_entry("api", DOWN, T1)
    assert entry == CheckHistoryEntry(
        monitor_id="api",
        timestamp=T1,
        status=CheckStatus.DOWN,
        latency=1000,
        message="Timeout",
    )
    assert history_entry("api", UP, T1).message == "OK"
