"""Monitor store - persistence for monitor state and check history.

The store is an explicit handle built around a session factory. Each method
runs in its own session; writes are single statements so a state upsert is
never interleaved with another write for the same monitor.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from ..models import CheckHistoryRecord, MonitorStateRecord
from ..utils.db_utils import retry_on_lock
from .checker import CheckStatus
from .state_tracker import CheckHistoryEntry, MonitorState

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The persistence layer failed; the transition was not recorded."""


def _to_state(row: MonitorStateRecord) -> MonitorState:
    return MonitorState(
        monitor_id=row.monitor_id,
        status=CheckStatus(row.status),
        last_checked_at=row.last_checked_at,
        last_latency=row.last_latency,
        fail_count=row.fail_count,
        first_fail_time=row.first_fail_time,
        last_error=row.last_error,
    )


def _to_entry(row: CheckHistoryRecord) -> CheckHistoryEntry:
    return CheckHistoryEntry(
        monitor_id=row.monitor_id,
        timestamp=row.timestamp,
        status=CheckStatus(row.status),
        latency=row.latency,
        message=row.message,
    )


class MonitorStore:
    """Reads and writes monitor state and history."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_monitor_state(self, monitor_id: str) -> Optional[MonitorState]:
        try:
            async with self._session_factory() as session:
                row = await session.get(MonitorStateRecord, monitor_id)
                return _to_state(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read state for monitor {monitor_id}: {e}") from e

    async def upsert_monitor_state(self, state: MonitorState) -> None:
        """Insert or replace the state row for state.monitor_id."""
        values = {
            "monitor_id": state.monitor_id,
            "status": state.status.value,
            "last_checked_at": state.last_checked_at,
            "last_latency": state.last_latency,
            "fail_count": state.fail_count,
            "first_fail_time": state.first_fail_time,
            "last_error": state.last_error,
        }

        async def write():
            async with self._session_factory() as session:
                if session.get_bind().dialect.name == "postgresql":
                    stmt = postgresql.insert(MonitorStateRecord).values(**values)
                else:
                    stmt = sqlite.insert(MonitorStateRecord).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[MonitorStateRecord.monitor_id],
                    set_={key: value for key, value in values.items() if key != "monitor_id"},
                )
                await session.execute(stmt)
                await session.commit()

        try:
            await retry_on_lock(write)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write state for monitor {state.monitor_id}: {e}") from e

    async def add_check_history(self, entry: CheckHistoryEntry) -> None:
        async def write():
            async with self._session_factory() as session:
                session.add(CheckHistoryRecord(
                    monitor_id=entry.monitor_id,
                    timestamp=entry.timestamp,
                    status=entry.status.value,
                    latency=entry.latency,
                    message=entry.message,
                ))
                await session.commit()

        try:
            await retry_on_lock(write)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to append history for monitor {entry.monitor_id}: {e}") from e

    async def get_history(self, monitor_id: str, limit: int = 50) -> List[CheckHistoryEntry]:
        """Most recent `limit` entries for a monitor, oldest first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(CheckHistoryRecord)
                    .where(CheckHistoryRecord.monitor_id == monitor_id)
                    .order_by(CheckHistoryRecord.timestamp.desc(), CheckHistoryRecord.id.desc())
                    .limit(limit)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read history for monitor {monitor_id}: {e}") from e
        return [_to_entry(row) for row in reversed(rows)]

    async def get_recent_history(self, limit: int = 60) -> List[CheckHistoryEntry]:
        """Most recent `limit` entries of every monitor, oldest first overall."""
        rn = func.row_number().over(
            partition_by=CheckHistoryRecord.monitor_id,
            order_by=(CheckHistoryRecord.timestamp.desc(), CheckHistoryRecord.id.desc()),
        ).label("rn")
        ranked = select(CheckHistoryRecord, rn).subquery()
        history = aliased(CheckHistoryRecord, ranked)

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(history)
                    .where(ranked.c.rn <= limit)
                    .order_by(history.timestamp, history.id)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read recent history: {e}") from e
        return [_to_entry(row) for row in rows]

    async def get_all_monitor_states(self) -> List[MonitorState]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MonitorStateRecord).order_by(MonitorStateRecord.monitor_id)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read monitor states: {e}") from e
        return [_to_state(row) for row in rows]
