"""Value objects flowing between the pipeline, the store and the CLI."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field

FIELD_NAMES = ("ein", "name", "city", "state", "country", "status")


@dataclass(frozen=True, slots=True)
class OrganizationRecord:
    """One registry entry as parsed from the upstream data file."""

    ein: str
    name: str
    city: str
    state: str
    country: str
    status: str

    @classmethod
    def from_fields(cls, fields: list[str] | tuple[str, ...]) -> "OrganizationRecord":
        return cls(*fields)

    def as_row(self) -> tuple[str, ...]:
        return (self.ein, self.name, self.city, self.state, self.country, self.status)


@dataclass(frozen=True, slots=True)
class StoredOrganization:
    """A persisted registry entry carrying its store-assigned id."""

    id: int
    ein: str
    name: str
    city: str
    state: str
    country: str
    status: str

    @property
    def record(self) -> OrganizationRecord:
        return OrganizationRecord(
            self.ein, self.name, self.city, self.state, self.country, self.status
        )

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class OrganizationPage:
    """One window of a sorted, optionally filtered listing."""

    total_records: int
    page: int
    page_size: int
    items: list[StoredOrganization] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_records / self.page_size)

    def to_dict(self) -> dict[str, object]:
        return {
            "totalRecords": self.total_records,
            "totalPages": self.total_pages,
            "items": [item.to_dict() for item in self.items],
        }


__all__ = ["FIELD_NAMES", "OrganizationPage", "OrganizationRecord", "StoredOrganization"]
