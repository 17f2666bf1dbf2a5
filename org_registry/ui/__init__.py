"""User interaction helpers."""

from .progress import BatchProgress

__all__ = ["BatchProgress"]
