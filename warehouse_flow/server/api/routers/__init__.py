"""API routers exposed by the server package."""

from .v1.health import router as health_router
from .v1.observability import router as observability_router
from .v1.packages import router as packages_router
from .v1.pallets import router as pallets_router

__all__ = [
	"health_router",
	"observability_router",
	"packages_router",
	"pallets_router",
]
