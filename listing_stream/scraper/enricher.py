"""Per-item detail enrichment: detail page → description frame → summary."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from listing_stream.scraper.extractor import extract_description_text, extract_detail
from listing_stream.scraper.fetcher import Fetcher
from listing_stream.scraper.models import NO_DESCRIPTION, DetailedItem, ListingItem, Success
from listing_stream.scraper.retry import RetryPolicy

logger = logging.getLogger(__name__)

Summarize = Callable[[str], Awaitable[str]]


class DetailEnricher:
    """Turns a :class:`ListingItem` into a :class:`DetailedItem`.

    Never raises for scraping problems: anything that goes wrong leaves the
    item with ``description="-"``.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        retry_policy: RetryPolicy,
        summarize: Summarize,
        timeout: float = 60.0,
    ) -> None:
        self.fetcher = fetcher
        self.retry_policy = retry_policy
        self.summarize = summarize
        self.timeout = timeout

    async def _fetch_body(self, url: str, label: str) -> Optional[str]:
        outcome = await self.retry_policy.run(
            lambda: self.fetcher.fetch(url, self.timeout), label=label
        )
        if isinstance(outcome, Success):
            return outcome.body
        logger.error("Failed to fetch %s (%s): %s", label, url, outcome)
        return None

    async def describe(self, item: ListingItem) -> str:
        logger.info("Scraping product detail: %s | %s", item.title, item.link)

        detail_html = await self._fetch_body(item.link, label=f"detail of {item.title!r}")
        if detail_html is None:
            return NO_DESCRIPTION

        iframe_src = extract_detail(detail_html).iframe_src
        if not iframe_src:
            logger.info("No description frame for %s", item.link)
            return NO_DESCRIPTION

        logger.info("Scraping product description from iframe %s", iframe_src)
        frame_html = await self._fetch_body(iframe_src, label=f"description of {item.title!r}")
        if frame_html is None:
            return NO_DESCRIPTION

        text = extract_description_text(frame_html)
        if not text:
            return NO_DESCRIPTION
        return await self.summarize(text)

    async def enrich(self, item: ListingItem) -> DetailedItem:
        try:
            description = await self.describe(item)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Failed to scrape product detail for %s | %s: %s",
                item.title,
                item.link,
                exc,
                exc_info=True,
            )
            description = NO_DESCRIPTION
        return DetailedItem.from_listing(item, description)
