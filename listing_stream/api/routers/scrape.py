"""Listing scrape endpoint with Server-Sent Events (SSE) streaming.

Routes
------
GET /api/scrape?search=<term>&page=1&size=10&getAll=false&scrapeDetails=false

The pipeline runs as a background task that pushes events into a per-request
queue; the response drains the queue.  If the client disconnects, the task is
cancelled at its current await point so no further fetches are issued.

SSE event format
----------------
Each event is a named SSE event with a JSON (or literal) ``data:`` line::

    event: meta
    data: {"page": 1, "pageSize": 10, "itemCount": 10}

    event: batch
    data: [{"title": "...", "price": "...", "link": "...", "imageUrl": "..."}]

    event: done
    data: success

A stream that ends without ``done`` is an incomplete fetch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from listing_stream.scraper import QueueSink, ScrapePipeline, ScrapeRequest, format_sse

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def error_details(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Reduce pydantic error dicts to JSON-safe ``{"loc", "msg"}`` pairs."""
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": str(err.get("msg", ""))}
        for err in errors
    ]


async def _run_pipeline(
    pipeline: ScrapePipeline,
    scrape_request: ScrapeRequest,
    sink: QueueSink,
) -> None:
    """Run the pipeline; on an unexpected fault close the sink without ``done``."""
    try:
        await pipeline.run(scrape_request, sink)
    except Exception:  # noqa: BLE001
        logger.exception("Scrape failed for search=%r", scrape_request.search_term)
    finally:
        sink.close()


async def _scrape_sse_generator(
    pipeline: ScrapePipeline,
    scrape_request: ScrapeRequest,
) -> AsyncIterator[str]:
    """Yield SSE frames until the sink is closed."""
    sink = QueueSink()
    task = asyncio.create_task(_run_pipeline(pipeline, scrape_request, sink))

    try:
        while True:
            event = await sink.queue.get()
            if event is None:
                break
            yield format_sse(event)
    finally:
        if not task.done():
            logger.info("Client disconnected, cancelling scrape for %r", scrape_request.search_term)
            task.cancel()
        await asyncio.wait({task})


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

@router.get("/scrape")
async def scrape(
    request: Request,
    search: str = Query(""),
    page: int = Query(1),
    size: Optional[int] = Query(None),
    getAll: bool = Query(False),
    scrapeDetails: bool = Query(False),
) -> StreamingResponse:
    """Scrape search results for *search* and stream them as SSE.

    Args:
        search: Search term; must be non-empty after trimming.
        page: Page to fetch (ignored when ``getAll`` is set).
        size: Items wanted from that page, 1–240.
        getAll: Walk every page from 1 until the results run out.
        scrapeDetails: Enrich each item with its summarised description.
    """
    pipeline: ScrapePipeline = request.app.state.pipeline
    try:
        scrape_request = ScrapeRequest(
            search_term=search,
            page=page,
            page_size=size if size is not None else pipeline.settings.default_page_size,
            fetch_all=getAll,
            fetch_details=scrapeDetails,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=error_details(exc.errors())) from exc

    return StreamingResponse(
        _scrape_sse_generator(pipeline, scrape_request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",   # disable nginx proxy buffering
        },
    )
