"""Tests for the HTTP fetcher.

httpx.MockTransport stands in for the network; compressed bodies are built
with the real codecs so decoding goes through httpx's own decoders.
"""

from __future__ import annotations

import gzip
import zlib

import brotli
import httpx
import pytest

from hopp.exceptions import FetchError, HttpStatusError, TransportError
from hopp.services.fetcher import FetchConfig, Fetcher

PAGE = "<html><body><article>Trivia Night</article></body></html>"


def _fetcher(handler) -> Fetcher:
    return Fetcher(FetchConfig(user_agent="hopp-test/1.0"), transport=httpx.MockTransport(handler))


class TestDecoding:
    @pytest.mark.asyncio
    async def test_plain_body(self):
        fetcher = _fetcher(lambda request: httpx.Response(
            200, text=PAGE, headers={"Content-Type": "text/html; charset=utf-8"}
        ))
        doc = await fetcher.fetch("https://brewery.example/events")
        assert doc.text == PAGE
        assert doc.status == 200
        assert doc.content_type.startswith("text/html")
        assert doc.url == "https://brewery.example/events"

    @pytest.mark.asyncio
    async def test_gzip_body_is_decoded(self):
        fetcher = _fetcher(lambda request: httpx.Response(
            200, content=gzip.compress(PAGE.encode()), headers={"Content-Encoding": "gzip"}
        ))
        doc = await fetcher.fetch("https://brewery.example/events")
        assert doc.text == PAGE

    @pytest.mark.asyncio
    async def test_deflate_body_is_decoded(self):
        fetcher = _fetcher(lambda request: httpx.Response(
            200, content=zlib.compress(PAGE.encode()), headers={"Content-Encoding": "deflate"}
        ))
        doc = await fetcher.fetch("https://brewery.example/events")
        assert doc.text == PAGE

    @pytest.mark.asyncio
    async def test_brotli_body_is_decoded(self):
        fetcher = _fetcher(lambda request: httpx.Response(
            200, content=brotli.compress(PAGE.encode()), headers={"Content-Encoding": "br"}
        ))
        doc = await fetcher.fetch("https://brewery.example/events")
        assert doc.text == PAGE


class TestRequest:
    @pytest.mark.asyncio
    async def test_sends_browser_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, text="ok")

        await _fetcher(handler).fetch("https://brewery.example/")
        assert seen["user-agent"] == "hopp-test/1.0"
        assert "br" in seen["accept-encoding"]
        assert seen["accept"].startswith("text/html")

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://brewery.example/new"})
            return httpx.Response(200, text="moved here")

        doc = await _fetcher(handler).fetch("https://brewery.example/old")
        assert doc.text == "moved here"
        assert doc.url == "https://brewery.example/new"

    @pytest.mark.asyncio
    async def test_access_token_redacted_from_document_url(self):
        fetcher = _fetcher(lambda request: httpx.Response(200, json={"data": []}))
        doc = await fetcher.fetch(
            "https://graph.example/v23.0/123", params={"fields": "id", "access_token": "secret"}
        )
        assert "secret" not in doc.url
        assert "access_token=***" in doc.url


class TestErrors:
    @pytest.mark.asyncio
    async def test_non_2xx_raises_status_error(self):
        fetcher = _fetcher(lambda request: httpx.Response(503, text="down for maintenance"))
        with pytest.raises(HttpStatusError) as exc_info:
            await fetcher.fetch("https://brewery.example/events")
        assert exc_info.value.status == 503
        assert exc_info.value.body == "down for maintenance"
        assert isinstance(exc_info.value, FetchError)

    @pytest.mark.asyncio
    async def test_not_found_raises_status_error(self):
        fetcher = _fetcher(lambda request: httpx.Response(404))
        with pytest.raises(HttpStatusError) as exc_info:
            await fetcher.fetch("https://brewery.example/missing")
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            await _fetcher(handler).fetch("https://brewery.example/events")
        assert "ConnectError" in exc_info.value.reason
        assert exc_info.value.url == "https://brewery.example/events"

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            await _fetcher(handler).fetch("https://brewery.example/events", timeout=0.5)
