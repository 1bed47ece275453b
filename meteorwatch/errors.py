"""Error taxonomy for the feed pipeline.

None of these are fatal to the process: fetch failures are surfaced as a
notice while the last-known state is kept, malformed catalog entries are
dropped, and an empty catalog is reported as its own status.
"""

from __future__ import annotations


class FeedError(Exception):
    """Base class for feed pipeline errors."""


class FetchFailure(FeedError):
    """Network, HTTP status or payload-decoding failure talking to a feed."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class MalformedItem(FeedError):
    """A single catalog entry is missing required numeric fields."""


class EmptyCatalog(FeedError):
    """No usable items were left after normalization."""
