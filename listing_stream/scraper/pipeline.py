"""Pagination engine: drives the fetch → extract → emit loop for one request.

States::

    Init → FetchingPage → Emitting → (Continue | Done)

Single-page mode fetches exactly one page (at the requested page number, at
the smallest site page-size tier that fits, truncated to the requested size).
Fetch-all mode starts at page 1 with the largest tier and keeps going until a
page comes back empty.  There is deliberately no page cap in fetch-all mode:
a search with a very long tail runs until the site stops returning results.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlencode

from listing_stream.config import Settings
from listing_stream.scraper.emitter import EventSink, StreamEmitter
from listing_stream.scraper.enricher import DetailEnricher, Summarize
from listing_stream.scraper.extractor import extract_listing
from listing_stream.scraper.fetcher import Fetcher
from listing_stream.scraper.models import ListingItem, PageMeta, ScrapeRequest, Success
from listing_stream.scraper.retry import RetryPolicy

logger = logging.getLogger(__name__)

PAGE_SIZE_TIERS = (60, 120, 240)


def closest_page_size(size: int) -> int:
    """Smallest supported ``_ipg`` tier that holds *size* items (240 at most)."""
    for tier in PAGE_SIZE_TIERS:
        if size <= tier:
            return tier
    return PAGE_SIZE_TIERS[-1]


def build_search_url(base_url: str, search_term: str, page: int, page_size: int) -> str:
    query = urlencode(
        {
            "_from": "R40",
            "_nkw": search_term,
            "_sacat": 0,
            "rt": "nc",
            "_pgn": page,
            "_ipg": page_size,
        }
    )
    return f"{base_url.rstrip('/')}/sch/i.html?{query}"


class ScrapePipeline:
    """Runs one :class:`ScrapeRequest` to completion against an event sink.

    All collaborators are injected; the pipeline keeps no state between runs.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: Fetcher,
        retry_policy: RetryPolicy,
        enricher: DetailEnricher,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.retry_policy = retry_policy
        self.enricher = enricher

    async def fetch_listing(self, url: str, page: int) -> List[ListingItem]:
        """Fetch and parse one listing page; any failure reads as an empty page."""
        outcome = await self.retry_policy.run(
            lambda: self.fetcher.fetch(url, self.settings.listing_timeout),
            label=f"listing page #{page}",
        )
        if not isinstance(outcome, Success):
            logger.error("Error scraping product list %s: %s", url, outcome)
            return []
        return extract_listing(outcome.body)

    async def run(self, request: ScrapeRequest, sink: EventSink) -> None:
        emitter = StreamEmitter(sink, batch_size=self.settings.batch_size)

        if request.fetch_all:
            page = 1
            tier = self.settings.max_get_all_page_size
            limit: Optional[int] = None
            meta_size = tier
        else:
            page = request.page
            tier = closest_page_size(request.page_size)
            limit = request.page_size
            meta_size = request.page_size

        while True:
            logger.info(
                "Scraping listing page #%d (search=%r page=%d size=%d getAll=%s scrapeDetails=%s)",
                page,
                request.search_term,
                request.page,
                request.page_size,
                request.fetch_all,
                request.fetch_details,
            )
            url = build_search_url(self.settings.ebay_base_url, request.search_term, page, tier)
            items = await self.fetch_listing(url, page)

            if not items:
                logger.info("Listing page #%d is empty, stopping", page)
                break

            if limit is not None:
                items = items[:limit]
            logger.info("Found %d products on page #%d", len(items), page)

            emitter.meta(PageMeta(page=page, page_size=meta_size, item_count=len(items)))

            if request.fetch_details:
                for item in items:
                    emitter.add(await self.enricher.enrich(item))
                emitter.flush()
            else:
                emitter.batch(items)

            if not request.fetch_all:
                break
            page += 1

        emitter.done()


def build_pipeline(settings: Settings, summarize: Optional[Summarize] = None) -> ScrapePipeline:
    """Wire the default collaborators from *settings*.

    Args:
        settings: Runtime configuration.
        summarize: Optional ``async (text) -> text`` override; defaults to
            :class:`~listing_stream.llm.DescriptionSummarizer`.
    """
    from listing_stream.llm import DescriptionSummarizer
    from listing_stream.scraper.identity import IdentityProvider, ProxyPool, load_proxy_file

    proxies = list(settings.proxy_pool)
    if settings.proxy_pool_file is not None:
        proxies.extend(load_proxy_file(settings.proxy_pool_file))

    fetcher = Fetcher(IdentityProvider(ProxyPool(proxies)))
    retry_policy = RetryPolicy(max_retries=settings.max_retries)
    if summarize is None:
        summarize = DescriptionSummarizer(settings).summarize

    enricher = DetailEnricher(
        fetcher=fetcher,
        retry_policy=retry_policy,
        summarize=summarize,
        timeout=settings.detail_timeout,
    )
    return ScrapePipeline(settings, fetcher, retry_policy, enricher)
