"""Exception types raised by the scrape pipeline."""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for pipeline errors."""


class StreamClosedError(ScrapeError):
    """An event was emitted after ``done`` or after the sink was closed."""
