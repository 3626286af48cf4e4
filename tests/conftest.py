"""Shared test fixtures."""
from __future__ import annotations

from typing import Iterable, List

import pytest
import pytest_asyncio

from pulsewatch.database import close_db, create_engine, create_session_factory, init_db
from pulsewatch.schemas.monitor import MonitorConfig
from pulsewatch.services.checker import CheckResult, CheckStatus
from pulsewatch.services.store import MonitorStore


def make_config(**overrides) -> MonitorConfig:
    data = {
        "id": "api",
        "type": "http",
        "url": "https://status.example.test/health",
        "timeout": 1000,
        "expected_latency": 300,
    }
    data.update(overrides)
    return MonitorConfig(**data)


class ScriptedExecutor:
    """Stands in for CheckExecutor, returning results in order."""

    def __init__(self, results: Iterable[CheckResult]) -> None:
        self.results: List[CheckResult] = list(results)
        self.calls: List[MonitorConfig] = []

    async def execute(self, config: MonitorConfig) -> CheckResult:
        self.calls.append(config)
        return self.results.pop(0)


UP = CheckResult(CheckStatus.UP, 42, "OK")
DOWN = CheckResult(CheckStatus.DOWN, 1000, "Timeout")
DEGRADED = CheckResult(CheckStatus.DEGRADED, 450, "High latency")


@pytest.fixture
def config() -> MonitorConfig:
    return make_config()


@pytest_asyncio.fixture
async def store(tmp_path) -> MonitorStore:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield MonitorStore(create_session_factory(engine))
    await close_db(engine)
