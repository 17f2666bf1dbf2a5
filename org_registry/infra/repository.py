"""Query and write access to the organizations table."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Iterable, Sequence

from ..records import OrganizationRecord, StoredOrganization
from .storage import SQLiteManager

_COLUMNS = "id, ein, name, city, state, country, status"
# SQLite caps host parameters per statement (999 on older builds)
_MAX_PARAMS = 900


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _row_to_organization(row: sqlite3.Row) -> StoredOrganization:
    return StoredOrganization(
        id=row["id"],
        ein=row["ein"],
        name=row["name"],
        city=row["city"],
        state=row["state"],
        country=row["country"],
        status=row["status"],
    )


class OrganizationRepository:
    """Thread-safe wrapper around the shared SQLite connection."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self._lock = Lock()
        self._conn = self.manager.connect(db_path)

    def count(self, search: str | None = None) -> int:
        where, params = self._search_clause(search)
        with self._lock:
            row = self._conn.execute(
                f"SELECT COUNT(*) FROM organizations{where}", params
            ).fetchone()
        return int(row[0])

    def existing_eins(self, eins: Iterable[str]) -> set[str]:
        """Return the subset of ``eins`` already present in the store."""

        wanted = list(dict.fromkeys(eins))
        found: set[str] = set()
        with self._lock:
            for start in range(0, len(wanted), _MAX_PARAMS):
                chunk = wanted[start : start + _MAX_PARAMS]
                placeholders = ", ".join("?" for _ in chunk)
                rows = self._conn.execute(
                    f"SELECT ein FROM organizations WHERE ein IN ({placeholders})", chunk
                ).fetchall()
                found.update(row["ein"] for row in rows)
        return found

    def insert_many(self, records: Sequence[OrganizationRecord]) -> int:
        """Insert records in one transaction and return how many rows were added.

        Rows whose EIN already exists are ignored by the uniqueness constraint.
        On error the whole transaction is rolled back and the exception raised.
        """

        if not records:
            return 0
        with self._lock:
            before = self._conn.total_changes
            with self._conn:
                self._conn.executemany(
                    "INSERT OR IGNORE INTO organizations(ein, name, city, state, country, status) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    [record.as_row() for record in records],
                )
            return self._conn.total_changes - before

    def search(
        self, search: str | None = None, *, offset: int = 0, limit: int = 10
    ) -> list[StoredOrganization]:
        where, params = self._search_clause(search)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM organizations{where} "
                "ORDER BY name COLLATE NOCASE ASC, id ASC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()
        return [_row_to_organization(row) for row in rows]

    def get_by_ein(self, ein: str) -> StoredOrganization | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM organizations WHERE ein = ?", (ein,)
            ).fetchone()
        return _row_to_organization(row) if row is not None else None

    def delete_all(self) -> int:
        with self._lock:
            with self._conn:
                cursor = self._conn.execute("DELETE FROM organizations")
            return cursor.rowcount

    @staticmethod
    def _search_clause(search: str | None) -> tuple[str, tuple[str, ...]]:
        if not search:
            return "", ()
        pattern = _like_pattern(search)
        return (
            " WHERE name LIKE ? ESCAPE '\\' OR ein LIKE ? ESCAPE '\\'",
            (pattern, pattern),
        )


__all__ = ["OrganizationRepository"]
