"""Unpack the downloaded archive into a clean scratch directory."""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path

import structlog

from ..errors import ArchiveError


class ArchiveExtractor:
    """Full-replace extraction: the target directory never merges with a prior run."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self.logger = logger or structlog.get_logger("org_registry.extractor")

    def extract(self, archive: Path, target: Path) -> Path:
        if target.exists():
            try:
                shutil.rmtree(target)
            except OSError as exc:
                raise ArchiveError(f"Could not clear extraction directory {target}: {exc}") from exc
        try:
            with zipfile.ZipFile(archive) as bundle:
                self._check_members(bundle, target)
                bundle.extractall(target)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as exc:
            raise ArchiveError(f"Archive unreadable or corrupt: {archive}: {exc}") from exc
        self.logger.info("archive_extracted", archive=str(archive), target=str(target))
        return target

    @staticmethod
    def _check_members(bundle: zipfile.ZipFile, target: Path) -> None:
        root = target.resolve()
        for name in bundle.namelist():
            destination = (root / name).resolve()
            if destination != root and root not in destination.parents:
                raise ArchiveError(f"Archive member escapes extraction directory: {name}")
        broken = bundle.testzip()
        if broken is not None:
            raise ArchiveError(f"Archive member failed CRC check: {broken}")


__all__ = ["ArchiveExtractor"]
