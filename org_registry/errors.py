"""Exception hierarchy shared by the ingestion pipeline and the store."""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for every error raised by org-registry."""

    kind = "registry"


class IngestionError(RegistryError):
    """A stage of the ingestion pipeline failed."""

    kind = "ingestion"


class NetworkError(IngestionError):
    """Archive download failed or returned a non-success status."""

    kind = "network"


class ArchiveError(IngestionError):
    """Archive is missing, unreadable, corrupt or unsafe to extract."""

    kind = "archive"


class FormatError(IngestionError):
    """No parsable data file was found in the extracted archive."""

    kind = "format"


class StoreError(IngestionError):
    """Persisting a batch to the store failed."""

    kind = "store"


class IngestionBusyError(IngestionError):
    """Another ingestion run currently holds the single-flight gate."""

    kind = "busy"


__all__ = [
    "ArchiveError",
    "FormatError",
    "IngestionBusyError",
    "IngestionError",
    "NetworkError",
    "RegistryError",
    "StoreError",
]
