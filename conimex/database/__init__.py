"""Persistence for Conimex (DuckDB)."""

from .manager import DatabaseManager
from .session import Session

__all__ = ["DatabaseManager", "Session"]
