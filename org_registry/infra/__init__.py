"""Infra layer utilities (SQLite storage and repository)."""

from .repository import OrganizationRepository
from .storage import SQLiteManager

__all__ = ["OrganizationRepository", "SQLiteManager"]
