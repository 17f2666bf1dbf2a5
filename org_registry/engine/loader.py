"""Commit accepted batches to the store."""

from __future__ import annotations

import sqlite3
from typing import Sequence

import structlog

from ..errors import StoreError
from ..infra.repository import OrganizationRepository
from ..records import OrganizationRecord


class BatchLoader:
    """Persist one batch per transaction; earlier batches stay durable on failure."""

    def __init__(
        self,
        repository: OrganizationRepository,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.repository = repository
        self.logger = logger or structlog.get_logger("org_registry.loader")

    def load(self, batch: Sequence[OrganizationRecord]) -> int:
        try:
            added = self.repository.insert_many(batch)
        except sqlite3.Error as exc:
            raise StoreError(f"Batch commit failed: {exc}") from exc
        self.logger.debug("batch_committed", submitted=len(batch), added=added)
        return added


__all__ = ["BatchLoader"]
