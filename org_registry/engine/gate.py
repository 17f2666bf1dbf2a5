"""Single-flight execution gate for ingestion runs."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Iterator

from filelock import FileLock, Timeout

from ..errors import IngestionBusyError


class IngestionGate:
    """Admit at most one ingestion run at a time.

    A thread lock covers callers in this process; a lock file next to the
    scratch resources covers separate processes sharing the same paths.
    Busy triggers are rejected, never queued.
    """

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path
        self._local = Lock()

    @property
    def busy(self) -> bool:
        return self._local.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._local.acquire(blocking=False):
            raise IngestionBusyError("An ingestion run is already in progress")
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            file_lock = FileLock(str(self.lock_path), timeout=0)
            try:
                file_lock.acquire()
            except Timeout as exc:
                raise IngestionBusyError(
                    f"An ingestion run is already in progress (lock held: {self.lock_path})"
                ) from exc
            try:
                yield
            finally:
                file_lock.release()
        finally:
            self._local.release()


__all__ = ["IngestionGate"]
