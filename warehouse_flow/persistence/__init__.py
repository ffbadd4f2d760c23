"""Persistence layer built on async SQLAlchemy."""

from .base import EntityStore
from .database import create_schema, get_sessionmaker, init_engine, metadata
from .memory import InMemoryEntityStore
from .repository import SqlEntityStore

__all__ = [
    "EntityStore",
    "InMemoryEntityStore",
    "SqlEntityStore",
    "create_schema",
    "get_sessionmaker",
    "init_engine",
    "metadata",
]
