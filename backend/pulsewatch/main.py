"""Main FastAPI application - wires the store, runner and scheduler."""
import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI

from .config import Settings, settings, get_database_url
from .database import create_engine, create_session_factory, init_db, close_db
from .routers import status_router, monitors_router
from .schemas.monitor import MonitorConfig, load_monitors
from .services.checker import CheckExecutor
from .services.runner import MonitorRunner
from .services.scheduler import SchedulerService
from .services.store import MonitorStore

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _read_monitors(config: Settings) -> List[MonitorConfig]:
    if not os.path.exists(config.monitors_file):
        logger.warning(f"Monitors file {config.monitors_file} not found, nothing to check")
        return []
    monitors = load_monitors(config.monitors_file)
    logger.info(f"Loaded {len(monitors)} monitors from {config.monitors_file}")
    return monitors


def create_app(
    config: Settings = settings,
    monitors: Optional[List[MonitorConfig]] = None,
    executor: Optional[CheckExecutor] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    `monitors` overrides the monitors file; `executor` and `start_scheduler`
    exist so tests can run the app without real checks in the background.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        engine = create_engine(get_database_url(config))
        await init_db(engine, config.data_path)
        logger.info("Database initialized")

        monitor_list = monitors if monitors is not None else _read_monitors(config)
        store = MonitorStore(create_session_factory(engine))
        runner = MonitorRunner(store, executor)
        scheduler = SchedulerService(runner, config.max_concurrent_checks)

        app.state.store = store
        app.state.runner = runner
        app.state.monitors = {monitor.id: monitor for monitor in monitor_list}

        if start_scheduler:
            scheduler.start(monitor_list)

        yield

        scheduler.stop()
        await close_db(engine)
        logger.info("Shutdown complete")

    app = FastAPI(
        title="PulseWatch",
        description="HTTP and TCP uptime checks with debounced monitor state",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(status_router)
    app.include_router(monitors_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
