"""Scraper package: listing pagination, detail enrichment and event streaming."""

from listing_stream.scraper.emitter import ListSink, QueueSink, StreamEmitter, format_sse
from listing_stream.scraper.models import (
    DetailedItem,
    ListingItem,
    PageMeta,
    ScrapeEvent,
    ScrapeRequest,
)
from listing_stream.scraper.pipeline import ScrapePipeline, build_pipeline

__all__ = [
    "ScrapePipeline",
    "build_pipeline",
    "ScrapeRequest",
    "ScrapeEvent",
    "ListingItem",
    "DetailedItem",
    "PageMeta",
    "StreamEmitter",
    "QueueSink",
    "ListSink",
    "format_sse",
]
