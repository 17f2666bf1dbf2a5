"""Hard cap on the number of stored organizations."""

from __future__ import annotations

from typing import Sequence

from ..records import OrganizationRecord


class CapacityEnforcer:
    """Track store size during a run and trim batches to the remaining room."""

    def __init__(self, cap: int, current_size: int) -> None:
        self.cap = cap
        self.current_size = current_size

    @property
    def remaining(self) -> int:
        return self.cap - self.current_size

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def admit(self, batch: Sequence[OrganizationRecord]) -> list[OrganizationRecord]:
        """Return the part of ``batch`` that fits; empty once the cap is reached."""

        if self.exhausted:
            return []
        return list(batch[: self.remaining])

    def record(self, added: int) -> None:
        self.current_size += added


__all__ = ["CapacityEnforcer"]
