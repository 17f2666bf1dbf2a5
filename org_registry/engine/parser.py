"""Parse the pipe-delimited registry data file into candidate records."""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator

import structlog

from ..config import IngestionConfig
from ..errors import FormatError
from ..records import OrganizationRecord


class RecordParser:
    """Turn extracted text files into a single-pass stream of records.

    A line becomes a record only when it splits into exactly ``field_count``
    fields; any other line is dropped without being reported.
    """

    def __init__(
        self,
        config: IngestionConfig,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.delimiter = config.delimiter
        self.field_count = config.field_count
        self.text_glob = config.text_glob
        self.logger = logger or structlog.get_logger("org_registry.parser")

    def discover(self, directory: Path) -> list[Path]:
        pattern = self.text_glob.lower()
        matches = sorted(
            (
                path
                for path in directory.iterdir()
                if path.is_file() and fnmatchcase(path.name.lower(), pattern)
            ),
            key=lambda path: path.name,
        )
        if not matches:
            raise FormatError(
                f"No {self.text_glob} files found in the extracted archive: {directory}"
            )
        return matches

    def parse(self, directory: Path) -> Iterator[OrganizationRecord]:
        data_file = self.discover(directory)[0]
        self.logger.info("data_file_selected", path=str(data_file))
        return self.parse_file(data_file)

    def parse_file(self, path: Path) -> Iterator[OrganizationRecord]:
        with path.open("r", encoding="utf-8-sig", errors="replace", newline="") as stream:
            for line in stream:
                parts = line.rstrip("\r\n").split(self.delimiter)
                if len(parts) == self.field_count:
                    yield OrganizationRecord.from_fields(parts)


__all__ = ["RecordParser"]
