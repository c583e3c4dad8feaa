"""Database layer - session management and base models."""

from provisioner.core.database.base import Base, TimestampMixin
from provisioner.core.database.session import (
    create_engine,
    create_session_factory,
    get_db,
    get_engine,
    get_session_factory,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "create_engine",
    "create_session_factory",
    "get_db",
    "get_engine",
    "get_session_factory",
]
