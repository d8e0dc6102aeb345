"""Database layer - engine and base classes."""

from lalur_kernel.db.base import Base, TrackedBase, UUIDString
from lalur_kernel.db.engine import (
    build_engine,
    create_tables,
    get_engine,
    get_session,
)

__all__ = [
    "build_engine",
    "get_engine",
    "get_session",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
]
