"""Scoped ownership of the per-run scratch archive and extraction directory."""

from __future__ import annotations

import shutil
from pathlib import Path

import structlog


class ScratchSpace:
    """Context manager guaranteeing scratch removal on every exit path.

    Removal failures are logged and swallowed so they never replace the
    run's own outcome; the next run clears leftovers on entry.
    """

    def __init__(
        self,
        archive_path: Path,
        extract_dir: Path,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.archive_path = archive_path
        self.extract_dir = extract_dir
        self.logger = logger or structlog.get_logger("org_registry.scratch")
        self.cleanup_errors: list[str] = []

    def __enter__(self) -> "ScratchSpace":
        self.archive_path.parent.mkdir(parents=True, exist_ok=True)
        self.extract_dir.parent.mkdir(parents=True, exist_ok=True)
        self.release()
        self.cleanup_errors.clear()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def release(self) -> None:
        self._remove(self.archive_path)
        self._remove(self.extract_dir)

    def _remove(self, path: Path) -> None:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()
        except OSError as exc:
            self.cleanup_errors.append(str(path))
            self.logger.warning("scratch_cleanup_failed", path=str(path), error=str(exc))


__all__ = ["ScratchSpace"]
