"""Error taxonomy for the extraction pipeline.

Fetch errors are fatal to a single fetch and surface to the caller.
MalformedContentError is recovered by the pipeline (the document yields no
candidates). PersistenceError is reported per record by batch persistence.
"""

from __future__ import annotations


class HoppError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(HoppError):
    """A required setting (credentials, ids) is missing."""


class FetchError(HoppError):
    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class TransportError(FetchError):
    """Connection-level failure: DNS, refused connection, timeout."""

    def __init__(self, url: str, reason: str):
        super().__init__(url, f"Failed to fetch {url}: {reason}")
        self.reason = reason


class HttpStatusError(FetchError):
    """The server answered with a status outside [200, 300)."""

    def __init__(self, url: str, status: int, body: str = "", message: str | None = None):
        super().__init__(url, message or f"HTTP {status} fetching {url}")
        self.status = status
        self.body = body


class MalformedContentError(HoppError):
    """The payload could not be parsed as the expected format."""


class PersistenceError(HoppError):
    """The persistence collaborator rejected a record."""
