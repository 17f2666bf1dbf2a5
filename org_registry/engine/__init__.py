"""Engine components: fetch → extract → parse → dedup → cap → load."""

from .capacity import CapacityEnforcer
from .dedup import Deduplicator
from .extractor import ArchiveExtractor
from .fetcher import ArchiveFetcher
from .gate import IngestionGate
from .loader import BatchLoader
from .parser import RecordParser
from .scratch import ScratchSpace

__all__ = [
    "ArchiveExtractor",
    "ArchiveFetcher",
    "BatchLoader",
    "CapacityEnforcer",
    "Deduplicator",
    "IngestionGate",
    "RecordParser",
    "ScratchSpace",
]
