"""Database module for aihub.

This module provides the catalog tables and async session management.
"""

from aihub.db.base import Base, TimestampMixin, UUIDMixin
from aihub.db.models import (
    Company,
    Currency,
    ExchangeRate,
    Model,
    ModelConfig,
    RateLimit,
    Tier,
)
from aihub.db.session import (
    AsyncSession,
    close_db,
    create_tables,
    get_db_session,
    get_session,
    init_db,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Models
    "Company",
    "Model",
    "ModelConfig",
    "Tier",
    "RateLimit",
    "Currency",
    "ExchangeRate",
    # Session
    "AsyncSession",
    "get_session",
    "get_db_session",
    "init_db",
    "close_db",
    "create_tables",
]
