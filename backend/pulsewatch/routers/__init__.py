"""API routers."""
from .status import status_router, monitors_router

__all__ = ["status_router", "monitors_router"]
