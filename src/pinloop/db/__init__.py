"""Database configuration and utilities."""

from .session import SessionLocal, commit_or_rollback, create_tables, get_db

__all__ = ["get_db", "SessionLocal", "commit_or_rollback", "create_tables"]
