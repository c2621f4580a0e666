"""
Database module for autotube.

Provides the SQL-backed job store on an async SQLAlchemy engine with
SQLite WAL mode.
"""

from autotube.db.engine import create_engine, create_session_factory
from autotube.db.models import Base, JobRecord
from autotube.db.store import SqlJobStore

__all__ = [
    "Base",
    "JobRecord",
    "SqlJobStore",
    "create_engine",
    "create_session_factory",
]
