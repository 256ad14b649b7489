from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from hopp.config import DEFAULT_USER_AGENT
from hopp.exceptions import HttpStatusError, TransportError
from hopp.metrics import FETCH_DURATION_SECONDS
from hopp.schemas import RawDocument

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    # httpx decodes gzip/deflate itself and br when the brotli package is installed
    "Accept-Encoding": "gzip, deflate, br",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class FetchConfig:
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 30.0
    follow_redirects: bool = True
    headers: dict[str, str] = field(default_factory=lambda: dict(BROWSER_HEADERS))


class Fetcher:
    """Retrieve a URL and expose the decoded body as text.

    No retries: a TransportError or HttpStatusError goes straight back to the
    caller, who decides what to do. The per-call timeout is the only
    cancellation surface.
    """

    def __init__(self, config: FetchConfig | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config or FetchConfig()
        self._transport = transport

    @contextlib.asynccontextmanager
    async def _make_client(self, **overrides):
        """Create an httpx.AsyncClient with the configured defaults."""
        kwargs: dict[str, Any] = {
            "follow_redirects": self.config.follow_redirects,
            "timeout": self.config.timeout,
            "headers": {"User-Agent": self.config.user_agent, **self.config.headers},
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        kwargs.update(overrides)
        async with httpx.AsyncClient(**kwargs) as client:
            yield client

    async def fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> RawDocument:
        overrides = {"timeout": timeout} if timeout is not None else {}
        started = time.monotonic()
        try:
            async with self._make_client(**overrides) as client:
                resp = await client.get(url, params=params)
        except httpx.RequestError as e:
            logger.warning("Fetch failed for %s: %s: %s", _redact(url), type(e).__name__, e)
            raise TransportError(_redact(url), f"{type(e).__name__}: {e}") from e
        finally:
            FETCH_DURATION_SECONDS.observe(time.monotonic() - started)

        if not 200 <= resp.status_code < 300:
            logger.warning("Fetch of %s returned HTTP %d", _redact(url), resp.status_code)
            raise HttpStatusError(_redact(url), resp.status_code, body=resp.text[:500])

        logger.info(
            "Fetched %s (%d chars, encoding=%s)",
            _redact(url), len(resp.text), resp.headers.get("content-encoding", "identity"),
        )
        return RawDocument(
            url=_redact(str(resp.url)),
            status=resp.status_code,
            headers=dict(resp.headers),
            text=resp.text,
            content_type=resp.headers.get("content-type"),
        )


def _redact(url: str) -> str:
    """Hide access tokens from logged URLs."""
    if "access_token=" not in url:
        return url
    head, _, tail = url.partition("access_token=")
    _, amp, rest = tail.partition("&")
    return f"{head}access_token=***{amp}{rest}"
