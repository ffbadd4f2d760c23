"""Service layer exports for the warehouse flow engine."""

from .batch import BatchRunner
from .coordinator import TransitionCoordinator
from .health import StoreHealthIndicator, StoreHealthStatus
from .seed import SeedData, SeedReport, load_seed_file, seed_store

__all__ = [
	"BatchRunner",
	"TransitionCoordinator",
	"StoreHealthIndicator",
	"StoreHealthStatus",
	"SeedData",
	"SeedReport",
	"load_seed_file",
	"seed_store",
]
