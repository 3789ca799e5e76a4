"""Talon: supervision API for an external agent gateway."""

__version__ = "0.1.0"
