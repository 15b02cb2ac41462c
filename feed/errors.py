"""
Exceptions raised by the snapshot feed.
"""


class FeedError(Exception):
    """Base class for feed errors."""


class FeedUnavailableError(FeedError):
    """The authority could not be reached, or its reply was not JSON."""


class MalformedSnapshotError(FeedError):
    """A snapshot failed validation and was rejected as a whole."""
