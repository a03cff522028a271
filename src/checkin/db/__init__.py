"""SQLite storage for patients and weekly check-ins."""

from __future__ import annotations

from checkin.db.connection import DatabaseConnection, get_db, set_db

__all__ = ["DatabaseConnection", "get_db", "set_db"]
