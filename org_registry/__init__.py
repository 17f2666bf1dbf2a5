"""Bounded local mirror of the IRS Publication 78 organization registry."""

__version__ = "0.1.0"
