"""Pydantic models used across the org-registry configuration flow."""

from __future__ import annotations

import tempfile
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_SOURCE_URL = "https://apps.irs.gov/pub/epostcard/data-download-pub78.zip"
DEFAULT_RECORD_CAP = 5000
DEFAULT_BATCH_SIZE = 100


def _default_scratch_dir() -> Path:
    return Path(tempfile.gettempdir()) / "org-registry"


class ScheduleType(str, Enum):
    """Scheduler modes for periodic ingestion."""

    CRON = "cron"
    INTERVAL = "interval"


class ScheduleConfig(BaseModel):
    """Configuration describing when ingestion should be re-triggered."""

    type: ScheduleType = Field(default=ScheduleType.INTERVAL)
    value: Any = Field(
        default=86400,
        description="Cron expression or interval seconds, depending on type.",
    )

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON and not isinstance(self.value, str):
            raise ValueError("Cron schedule requires string expression")
        if self.type is ScheduleType.INTERVAL:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float, dict)):
                raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
            if isinstance(self.value, (int, float)) and self.value <= 0:
                raise ValueError("Interval seconds must be positive")
        return self


class IngestionConfig(BaseModel):
    """Knobs for the fetch → extract → parse → load pipeline."""

    source_url: str = DEFAULT_SOURCE_URL
    record_cap: int = DEFAULT_RECORD_CAP
    batch_size: int = DEFAULT_BATCH_SIZE
    delimiter: str = "|"
    field_count: int = 6
    text_glob: str = "*.txt"
    archive_name: str = "data-download-pub78.zip"
    extract_dir_name: str = "data-download-pub78"
    scratch_dir: Path = Field(default_factory=_default_scratch_dir)
    timeout: float = 60.0
    # Streaming buffer size in bytes
    chunk_size: int = 81920
    user_agent: str = "org-registry/0.1"
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    @field_validator("scratch_dir", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser()

    @model_validator(mode="after")
    def _validate_limits(self) -> "IngestionConfig":
        if self.record_cap < 0:
            raise ValueError("record_cap must be >= 0")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.field_count != 6:
            raise ValueError("field_count is fixed at 6 for the registry line format")
        if len(self.delimiter) != 1:
            raise ValueError("delimiter must be a single character")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not self.source_url:
            raise ValueError("source_url cannot be empty")
        return self

    @property
    def archive_path(self) -> Path:
        return self.scratch_dir / self.archive_name

    @property
    def extract_dir(self) -> Path:
        return self.scratch_dir / self.extract_dir_name

    @property
    def lock_path(self) -> Path:
        return self.scratch_dir / "ingestion.lock"


class StoreConfig(BaseModel):
    """Location of the SQLite store."""

    db_path: Path = Field(default=Path("registry.db"))

    @field_validator("db_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def resolved_db_path(self, base_dir: Path) -> Path:
        """Return the store path relative to the project data directory."""

        if not self.db_path.is_absolute():
            return (base_dir / self.db_path).resolve()
        return self.db_path


class GlobalConfig(BaseModel):
    """Top-level settings file contents."""

    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    enable_progress_bar: bool = True


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_RECORD_CAP",
    "DEFAULT_SOURCE_URL",
    "GlobalConfig",
    "IngestionConfig",
    "ScheduleConfig",
    "ScheduleType",
    "StoreConfig",
]
