"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    GlobalConfig,
    IngestionConfig,
    ScheduleConfig,
    ScheduleType,
    StoreConfig,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "GlobalConfig",
    "IngestionConfig",
    "ScheduleConfig",
    "ScheduleType",
    "StoreConfig",
]
