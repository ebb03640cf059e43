"""Exceptions raised by the discovery services"""

from typing import List, Optional


class DiscoveryError(Exception):
    pass


class InvalidArgument(DiscoveryError):
    """Malformed caller input (coordinates, radius, query length)."""


class NotFound(DiscoveryError):
    """Nothing matched; carries alternative queries for the caller."""

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.suggestions = list(suggestions or [])


class UpstreamUnavailable(DiscoveryError):
    """A single source could not be read (timeout, missing collection, driver error)."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class TotalAggregationFailure(DiscoveryError):
    """Every configured source failed."""
