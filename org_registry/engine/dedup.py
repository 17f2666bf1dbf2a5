"""Per-batch deduplication against the organizations store."""

from __future__ import annotations

import sqlite3
from typing import Sequence

from ..errors import StoreError
from ..infra.repository import OrganizationRepository
from ..records import OrganizationRecord


class Deduplicator:
    """Drop candidates whose EIN is already stored, one query per batch."""

    def __init__(self, repository: OrganizationRepository) -> None:
        self.repository = repository

    def filter_new(self, batch: Sequence[OrganizationRecord]) -> list[OrganizationRecord]:
        try:
            existing = self.repository.existing_eins(record.ein for record in batch)
        except sqlite3.Error as exc:
            raise StoreError(f"Dedup lookup failed: {exc}") from exc
        fresh: list[OrganizationRecord] = []
        seen: set[str] = set()
        for record in batch:
            if record.ein in existing or record.ein in seen:
                continue
            seen.add(record.ein)
            fresh.append(record)
        return fresh


__all__ = ["Deduplicator"]
