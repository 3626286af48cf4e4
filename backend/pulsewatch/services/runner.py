"""Monitor runner - one check plus the read-modify-write of its state."""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Optional

from ..schemas.monitor import MonitorConfig
from .checker import CheckExecutor, CheckStatus
from .state_tracker import MonitorState, history_entry, transition
from .store import MonitorStore

logger = logging.getLogger(__name__)


class MonitorRunner:
    """Runs a check for one monitor and records the result.

    Checks for the same monitor are serialized here as well as by the
    scheduler, so manual checks cannot race a scheduled one.
    """

    def __init__(self, store: MonitorStore, executor: Optional[CheckExecutor] = None):
        self.store = store
        self.executor = executor or CheckExecutor()
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def run(self, config: MonitorConfig) -> MonitorState:
        """Check the monitor, append history and persist the new state.

        StorageError from the store propagates to the caller. History and
        state are written in separate transactions, so a failed upsert can
        leave a history row behind with the previous state still stored.
        """
        async with self._locks[config.id]:
            result = await self.executor.execute(config)
            now = datetime.utcnow()

            previous = await self.store.get_monitor_state(config.id)
            state = transition(config.id, previous, result, now)

            await self.store.add_check_history(history_entry(config.id, result, now))
            await self.store.upsert_monitor_state(state)

        old_status = previous.status if previous else None
        if old_status != state.status:
            if state.status == CheckStatus.UP:
                if old_status is not None:
                    logger.info(f"Monitor {config.id} recovered ({result.latency}ms)")
            else:
                logger.warning(f"Monitor {config.id} is {state.status.value}: {result.message}")
        logger.debug(f"Monitor {config.id}: {result.status.value} ({result.latency}ms), fail_count={state.fail_count}")

        return state
