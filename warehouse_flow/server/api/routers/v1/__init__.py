"""Versioned API routers."""

from .health import router as health
from .packages import router as packages
from .pallets import router as pallets

__all__ = ["health", "packages", "pallets"]
