"""Ordered event stream: ``meta`` → ``batch``… → ``done``.

``StreamEmitter`` owns the protocol (event names, batching, the single
terminal ``done``); an ``EventSink`` owns delivery.  One emitter and one sink
per request, never shared.

Wire format (Server-Sent Events)::

    event: meta
    data: {"page": 1, "pageSize": 3, "itemCount": 3}

    event: batch
    data: [{"title": "...", "price": "...", "link": "...", "imageUrl": "..."}]

    event: done
    data: success
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Iterable, Optional, Protocol

from listing_stream.scraper.errors import StreamClosedError
from listing_stream.scraper.models import ListingItem, PageMeta, ScrapeEvent

DONE_DATA = "success"


def format_sse(event: ScrapeEvent) -> str:
    """Encode *event* as one SSE frame."""
    data = event.data if isinstance(event.data, str) else json.dumps(event.data)
    return f"event: {event.name}\ndata: {data}\n\n"


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------

class EventSink(Protocol):
    def emit(self, event: ScrapeEvent) -> None: ...

    def close(self) -> None: ...


class QueueSink:
    """Feeds an ``asyncio.Queue``; ``None`` is enqueued on close as a sentinel.

    The HTTP layer drains the queue into the streaming response.
    """

    def __init__(self, queue: Optional["asyncio.Queue[ScrapeEvent | None]"] = None) -> None:
        self.queue: asyncio.Queue[ScrapeEvent | None] = queue or asyncio.Queue()
        self.closed = False

    def emit(self, event: ScrapeEvent) -> None:
        if self.closed:
            raise StreamClosedError(f"cannot emit {event.name!r}: sink is closed")
        self.queue.put_nowait(event)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.queue.put_nowait(None)


class ListSink:
    """Collects events in memory."""

    def __init__(self) -> None:
        self.events: list[ScrapeEvent] = []
        self.closed = False

    def emit(self, event: ScrapeEvent) -> None:
        if self.closed:
            raise StreamClosedError(f"cannot emit {event.name!r}: sink is closed")
        self.events.append(event)

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Emitter
# ---------------------------------------------------------------------------

class StreamEmitter:
    """Protocol-level writer on top of an :class:`EventSink`."""

    def __init__(self, sink: EventSink, batch_size: int = 5) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.sink = sink
        self.batch_size = batch_size
        self.finished = False
        self._pending: list[dict[str, Any]] = []

    def _emit(self, name: str, data: Any) -> None:
        if self.finished:
            raise StreamClosedError(f"cannot emit {name!r} after done")
        self.sink.emit(ScrapeEvent(name=name, data=data))

    def meta(self, meta: PageMeta) -> None:
        self._emit("meta", meta.to_dict())

    def batch(self, items: Iterable[ListingItem]) -> None:
        """Emit *items* as one ``batch`` event."""
        self._emit("batch", [item.to_dict() for item in items])

    def add(self, item: ListingItem) -> None:
        """Buffer one enriched item; flush once ``batch_size`` are pending."""
        self._pending.append(item.to_dict())
        if len(self._pending) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        """Emit whatever is buffered (no-op when empty)."""
        if self._pending:
            pending, self._pending = self._pending, []
            self._emit("batch", pending)

    def done(self) -> None:
        """Emit the single terminal ``done`` event and close the sink."""
        self.flush()
        self._emit("done", DONE_DATA)
        self.finished = True
        self.sink.close()
