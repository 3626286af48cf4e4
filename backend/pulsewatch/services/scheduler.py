"""Scheduler service - runs monitor checks at their configured intervals.

Each enabled monitor gets its own interval job with max_instances=1, so a
monitor never has two checks in flight and its state read-modify-write is
serialized. Checks for different monitors run in parallel, bounded by a
shared semaphore.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..schemas.monitor import MonitorConfig
from .runner import MonitorRunner
from .state_tracker import MonitorState

logger = logging.getLogger(__name__)

# Maximum concurrent checks across all monitors
MAX_CONCURRENT_CHECKS = 10


def job_id(monitor_id: str) -> str:
    return f"monitor:{monitor_id}"


class SchedulerService:
    """Service for scheduling and running periodic checks."""

    def __init__(self, runner: MonitorRunner, max_concurrent: int = MAX_CONCURRENT_CHECKS):
        self.runner = runner
        self.max_concurrent = max_concurrent
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self, monitors: Iterable[MonitorConfig]):
        """Start the scheduler with one job per enabled monitor."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        count = 0
        for config in monitors:
            if not config.enabled:
                logger.debug(f"Monitor {config.id} is disabled, not scheduling")
                continue
            self.scheduler.add_job(
                self._run_monitor,
                trigger=IntervalTrigger(seconds=config.interval),
                args=[config],
                id=job_id(config.id),
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=config.interval,
                next_run_time=datetime.now(timezone.utc),  # first check right away
            )
            count += 1

        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started ({count} monitors, max_concurrent={self.max_concurrent})")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def run_all_now(self, monitors: Iterable[MonitorConfig]) -> List[MonitorState]:
        """Run every enabled monitor once, concurrently within the limit."""
        enabled = [config for config in monitors if config.enabled]
        results = await asyncio.gather(*[self._run_monitor(config) for config in enabled])
        return [state for state in results if state is not None]

    async def _run_monitor(self, config: MonitorConfig) -> Optional[MonitorState]:
        """Run one check; failures are logged so the job keeps its schedule."""
        async with self._semaphore:
            try:
                return await self.runner.run(config)
            except Exception as e:
                logger.error(f"Error checking monitor {config.id}: {e}")
                return None
