"""Outbound HTTP fetch with a rotating egress identity.

``Fetcher.fetch`` never raises for network trouble: every call resolves to a
:data:`FetchOutcome` that the caller (usually the retry policy) inspects.
"""

from __future__ import annotations

import logging

import httpx

from listing_stream.scraper.extractor import is_challenge_page
from listing_stream.scraper.identity import IdentityProvider
from listing_stream.scraper.models import FetchOutcome, HardFailure, SoftBlock, Success

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def classify_response(response: httpx.Response) -> FetchOutcome:
    """Map an HTTP response onto Success / SoftBlock / HardFailure."""
    if not response.is_success:
        return HardFailure(cause=f"HTTP {response.status_code}")
    body = response.text
    if is_challenge_page(body):
        return SoftBlock()
    return Success(body=body)


class Fetcher:
    """Issues one GET per call, each with a new identity from *identities*."""

    def __init__(self, identities: IdentityProvider) -> None:
        self.identities = identities

    async def fetch(self, url: str, timeout: float) -> FetchOutcome:
        identity = self.identities.next_identity()
        headers = {**_DEFAULT_HEADERS, "User-Agent": identity.user_agent}

        try:
            async with httpx.AsyncClient(
                headers=headers,
                proxy=identity.proxy,
                timeout=timeout,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Fetch failed for %s via %s: %r", url, identity.proxy or "direct", exc)
            return HardFailure(cause=f"{type(exc).__name__}: {exc}")

        outcome = classify_response(response)
        if isinstance(outcome, SoftBlock):
            logger.info("Anti-bot interstitial served for %s", url)
        elif isinstance(outcome, HardFailure):
            logger.warning("Fetch for %s returned %s", url, outcome.cause)
        return outcome
