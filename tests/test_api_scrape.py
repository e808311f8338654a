"""Tests for the scrape API router.

The app is created through ``create_app`` and run under ``TestClient``; after
start-up the pipeline on ``app.state`` is swapped for one whose fetcher serves
canned HTML, so no external services are required.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Generator
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from listing_stream.api.app import create_app
from listing_stream.api.routers.scrape import _scrape_sse_generator
from listing_stream.scraper.enricher import DetailEnricher
from listing_stream.scraper.models import FetchOutcome, ScrapeRequest, Success
from listing_stream.scraper.pipeline import ScrapePipeline
from listing_stream.scraper.retry import RetryPolicy

TITLES = ["Nike A", "Nike B", "Nike C", "Nike D", "Nike E"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_sse(content: bytes) -> list[tuple[str, Any]]:
    """Parse raw SSE bytes into ``(event, data)`` pairs."""
    events = []
    for frame in content.decode().split("\n\n"):
        if not frame.strip():
            continue
        name, data = "", ""
        for line in frame.splitlines():
            if line.startswith("event: "):
                name = line[len("event: "):]
            elif line.startswith("data: "):
                data = line[len("data: "):]
        try:
            events.append((name, json.loads(data)))
        except json.JSONDecodeError:
            events.append((name, data))
    return events


def _page_number(url: str) -> str:
    return parse_qs(urlparse(url).query).get("_pgn", [""])[0]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def respond(listing_html, detail_html) -> Callable[[str], str]:  # type: ignore[no-untyped-def]
    """Listing, detail and description-frame pages keyed on URL shape."""

    def _respond(url: str) -> str:
        if "/sch/" in url:
            return listing_html(TITLES, placeholder_first=True)
        if "/itm/" in url:
            return detail_html(url.replace("/itm/", "/desc/"))
        return "<body><p>Lovely shoes.</p></body>"

    return _respond


@pytest.fixture()
def fetcher(fake_fetcher, respond):  # type: ignore[no-untyped-def]
    return fake_fetcher(respond)


@pytest.fixture()
def client(test_settings, fetcher) -> Generator[TestClient, None, None]:
    """TestClient with a pipeline that never leaves the process."""
    retry = RetryPolicy(max_retries=test_settings.max_retries)
    enricher = DetailEnricher(
        fetcher=fetcher,
        retry_policy=retry,
        summarize=AsyncMock(return_value="Short summary."),
        timeout=test_settings.detail_timeout,
    )
    app = create_app()

    with TestClient(app, raise_server_exceptions=True) as c:
        c.app.state.pipeline = ScrapePipeline(test_settings, fetcher, retry, enricher)  # type: ignore[arg-type]
        yield c


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    @pytest.mark.parametrize(
        "params",
        [
            {},
            {"search": ""},
            {"search": "   "},
            {"search": "nike", "page": "-1"},
            {"search": "nike", "page": "0"},
            {"search": "nike", "size": "0"},
            {"search": "nike", "size": "300"},
            {"search": "nike", "size": "abc"},
            {"search": "nike", "page": "two"},
        ],
    )
    def test_invalid_input_is_400(self, client: TestClient, fetcher, params) -> None:  # type: ignore[no-untyped-def]
        resp = client.get("/api/scrape", params=params)

        assert resp.status_code == 400
        assert isinstance(resp.json()["detail"], list)
        assert fetcher.calls == []


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

class TestScrapeStream:
    def test_headers(self, client: TestClient) -> None:
        resp = client.get("/api/scrape", params={"search": "nike", "size": "3"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"
        assert resp.headers["x-accel-buffering"] == "no"

    def test_single_page_sequence(self, client: TestClient) -> None:
        resp = client.get(
            "/api/scrape",
            params={"search": "nike", "page": "1", "size": "3", "getAll": "false", "scrapeDetails": "false"},
        )
        events = _parse_sse(resp.content)

        assert [name for name, _ in events] == ["meta", "batch", "done"]
        assert events[0][1] == {"page": 1, "pageSize": 3, "itemCount": 3}
        assert [item["title"] for item in events[1][1]] == ["Nike A", "Nike B", "Nike C"]
        assert events[1][1][0]["imageUrl"] == "https://i.ebayimg.com/1.jpg"
        assert events[2][1] == "success"

    def test_default_size(self, client: TestClient, test_settings) -> None:
        events = _parse_sse(client.get("/api/scrape", params={"search": "nike"}).content)
        assert events[0][1]["pageSize"] == test_settings.default_page_size

    def test_details_are_batched(self, client: TestClient, test_settings) -> None:
        test_settings.batch_size = 2
        resp = client.get(
            "/api/scrape",
            params={"search": "nike", "size": "5", "scrapeDetails": "true"},
        )
        events = _parse_sse(resp.content)

        assert [name for name, _ in events] == ["meta", "batch", "batch", "batch", "done"]
        assert [len(data) for _, data in events[1:4]] == [2, 2, 1]
        assert events[1][1][0]["description"] == "Short summary."

    def test_fetch_all_stops_at_empty_page(self, client: TestClient, fetcher, respond) -> None:  # type: ignore[no-untyped-def]
        def responder(url: str) -> str:
            return respond(url) if _page_number(url) == "1" else "<html></html>"

        fetcher.responder = responder
        events = _parse_sse(client.get("/api/scrape", params={"search": "nike", "getAll": "true"}).content)

        assert [name for name, _ in events] == ["meta", "batch", "done"]
        assert events[0][1] == {"page": 1, "pageSize": 240, "itemCount": 5}
        assert len(fetcher.calls) == 2

    def test_unexpected_fault_ends_without_done(self, client: TestClient, fetcher) -> None:
        def responder(url: str) -> str:
            raise RuntimeError("parser exploded")

        fetcher.responder = responder
        events = _parse_sse(client.get("/api/scrape", params={"search": "nike"}).content)

        assert events == []


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# Client disconnect
# ---------------------------------------------------------------------------

class GatedDetailFetcher:
    """Serves the listing at once; every detail fetch waits on ``release``."""

    def __init__(self, listing: str) -> None:
        self.listing = listing
        self.calls: list[str] = []
        self.waiting = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch(self, url: str, timeout: float) -> FetchOutcome:
        self.calls.append(url)
        if "/sch/" in url:
            return Success(body=self.listing)
        self.waiting.set()
        await self.release.wait()
        return Success(body="<html><body></body></html>")


async def test_disconnect_cancels_pipeline(test_settings, listing_html) -> None:  # type: ignore[no-untyped-def]
    fetcher = GatedDetailFetcher(listing_html(TITLES))
    retry = RetryPolicy(max_retries=test_settings.max_retries)
    enricher = DetailEnricher(fetcher, retry, AsyncMock(return_value="-"), test_settings.detail_timeout)  # type: ignore[arg-type]
    pipeline = ScrapePipeline(test_settings, fetcher, retry, enricher)  # type: ignore[arg-type]
    request = ScrapeRequest(search_term="nike", page_size=5, fetch_details=True)

    tasks_before = asyncio.all_tasks()
    stream = _scrape_sse_generator(pipeline, request)

    first = await stream.__anext__()
    assert first.startswith("event: meta\n")
    await asyncio.wait_for(fetcher.waiting.wait(), timeout=1)
    calls_at_disconnect = len(fetcher.calls)
    assert calls_at_disconnect == 2

    await stream.aclose()
    fetcher.release.set()
    await asyncio.sleep(0.01)

    assert len(fetcher.calls) == calls_at_disconnect
    assert asyncio.all_tasks() <= tasks_before
