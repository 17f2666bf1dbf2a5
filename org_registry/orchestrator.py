"""Orchestrator wiring fetch, extract, parse, dedup, cap and load into one run."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Sequence

import httpx

from .config import ConfigRepository, GlobalConfig
from .engine import (
    ArchiveExtractor,
    ArchiveFetcher,
    BatchLoader,
    CapacityEnforcer,
    Deduplicator,
    IngestionGate,
    RecordParser,
    ScratchSpace,
)
from .errors import IngestionBusyError, RegistryError, StoreError
from .infra import OrganizationRepository, SQLiteManager
from .logging_conf import component_logger
from .records import OrganizationPage, OrganizationRecord, StoredOrganization
from .ui import BatchProgress

SUCCESS_MESSAGE = "Registry data fetched and uploaded successfully"
CAP_REACHED_MESSAGE = "Maximum record limit reached."


class IngestionStatus(str, Enum):
    """Normal terminal states of an ingestion run."""

    COMPLETED = "completed"
    CAP_REACHED = "cap_reached"


@dataclass(slots=True)
class IngestionSummary:
    """Counters describing one finished run."""

    status: IngestionStatus = IngestionStatus.COMPLETED
    parsed: int = 0
    batches: int = 0
    duplicates: int = 0
    truncated: int = 0
    added: int = 0
    store_size_before: int = 0
    store_size_after: int = 0
    cleanup_errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload


@dataclass(slots=True)
class IngestionOutcome:
    """Caller-facing result of an ingestion trigger."""

    success: bool
    message: str
    error_kind: str | None = None
    summary: IngestionSummary | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"success": self.success}
        if self.success:
            payload["message"] = self.message
        else:
            payload["error"] = self.message
            payload["errorKind"] = self.error_kind
        if self.summary is not None:
            payload["summary"] = self.summary.to_dict()
        return payload


class Orchestrator:
    """Central coordinator for ingestion runs and read access to the store."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        storage: SQLiteManager,
        client: httpx.Client | None = None,
        gate: IngestionGate | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.storage = storage
        self.client = client
        self.repository = OrganizationRepository(storage, config_repository.store_path())
        self.gate = gate or IngestionGate(self.global_config.ingestion.lock_path)
        self.logger = component_logger("orchestrator")

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------
    def run_ingestion(self, progress: BatchProgress | None = None) -> IngestionSummary:
        """Run the pipeline once; raises a :class:`RegistryError` subclass on failure."""

        config = self.global_config.ingestion
        log = self.logger.bind(run_id=uuid.uuid4().hex[:8])
        with self.gate.hold():
            log.info("ingestion_started", url=config.source_url, cap=config.record_cap)
            scratch = ScratchSpace(config.archive_path, config.extract_dir, logger=log)
            with scratch, ArchiveFetcher(config, self.client, logger=log) as fetcher:
                fetcher.fetch(config.source_url, scratch.archive_path)
                ArchiveExtractor(logger=log).extract(scratch.archive_path, scratch.extract_dir)
                candidates = list(RecordParser(config, logger=log).parse(scratch.extract_dir))
                log.info("records_parsed", count=len(candidates))
                summary = self._load_candidates(candidates, log, progress)
            summary.cleanup_errors = list(scratch.cleanup_errors)
        log.info("ingestion_finished", **summary.to_dict())
        return summary

    def trigger_ingestion(self, progress: BatchProgress | None = None) -> IngestionOutcome:
        """Run ingestion and map every failure to an unsuccessful outcome."""

        try:
            summary = self.run_ingestion(progress)
        except IngestionBusyError as exc:
            self.logger.warning("ingestion_rejected", error=str(exc))
            return IngestionOutcome(False, str(exc), error_kind=exc.kind)
        except RegistryError as exc:
            self.logger.error("ingestion_failed", error=str(exc), error_kind=exc.kind)
            return IngestionOutcome(False, str(exc), error_kind=exc.kind)
        except Exception as exc:  # noqa: BLE001
            self.logger.exception("ingestion_failed", error=str(exc), error_kind="unexpected")
            return IngestionOutcome(False, str(exc), error_kind="unexpected")
        if summary.status is IngestionStatus.CAP_REACHED and summary.added == 0:
            return IngestionOutcome(True, CAP_REACHED_MESSAGE, summary=summary)
        return IngestionOutcome(True, SUCCESS_MESSAGE, summary=summary)

    def _load_candidates(
        self,
        candidates: Sequence[OrganizationRecord],
        log,
        progress: BatchProgress | None,
    ) -> IngestionSummary:
        config = self.global_config.ingestion
        batch_size = config.batch_size
        try:
            current_size = self.repository.count()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not count stored records: {exc}") from exc
        enforcer = CapacityEnforcer(config.record_cap, current_size)
        dedup = Deduplicator(self.repository)
        loader = BatchLoader(self.repository, logger=log)
        summary = IngestionSummary(parsed=len(candidates), store_size_before=current_size)

        total_batches = -(-len(candidates) // batch_size)
        if progress is not None:
            progress.start(total_batches)
        try:
            for start in range(0, len(candidates), batch_size):
                if enforcer.exhausted:
                    break
                batch = candidates[start : start + batch_size]
                fresh = dedup.filter_new(batch)
                accepted = enforcer.admit(fresh)
                added = loader.load(accepted) if accepted else 0
                enforcer.record(added)
                summary.batches += 1
                summary.duplicates += len(batch) - len(fresh)
                summary.truncated += len(fresh) - len(accepted)
                summary.added += added
                log.info(
                    "batch_committed",
                    batch=summary.batches,
                    candidates=len(batch),
                    added=added,
                    store_size=enforcer.current_size,
                )
                if progress is not None:
                    progress.advance(added=added, skipped=len(batch) - added)
        finally:
            if progress is not None:
                progress.close()

        if enforcer.exhausted:
            summary.status = IngestionStatus.CAP_REACHED
            log.info("cap_reached", cap=config.record_cap, store_size=enforcer.current_size)
        summary.store_size_after = enforcer.current_size
        return summary

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------
    def list_organizations(
        self, search: str | None = None, page: int = 1, page_size: int = 10
    ) -> OrganizationPage:
        if page < 1:
            raise ValueError("page must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        term = search or None
        total = self.repository.count(term)
        items = self.repository.search(term, offset=(page - 1) * page_size, limit=page_size)
        return OrganizationPage(total_records=total, page=page, page_size=page_size, items=items)

    def get_organization(self, ein: str) -> StoredOrganization | None:
        return self.repository.get_by_ein(ein)

    def delete_all(self) -> int:
        removed = self.repository.delete_all()
        self.logger.warning("store_purged", removed=removed)
        return removed


__all__ = [
    "CAP_REACHED_MESSAGE",
    "IngestionOutcome",
    "IngestionStatus",
    "IngestionSummary",
    "Orchestrator",
    "SUCCESS_MESSAGE",
]
