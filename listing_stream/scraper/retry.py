"""Bounded, immediate retry of anti-bot soft blocks.

Only :class:`SoftBlock` is retried.  Each re-attempt calls the operation
again, and the fetcher hands out a new egress identity per call, so identity
rotation comes for free.  No backoff or jitter is applied.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from listing_stream.scraper.models import FetchOutcome, SoftBlock

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[FetchOutcome]]


class RetryPolicy:
    """Re-run an operation while it keeps returning :class:`SoftBlock`.

    Args:
        max_retries: Re-attempts allowed after the first call, so at most
            ``max_retries + 1`` calls are made.
    """

    def __init__(self, max_retries: int = 3) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries

    async def run(self, operation: Operation, label: str = "") -> FetchOutcome:
        """Return the first non-SoftBlock outcome, or the last SoftBlock.

        The caller checks ``outcome.ok`` and picks its own fallback; this
        method never raises for fetch problems.
        """
        outcome = await operation()
        retries = 0
        while isinstance(outcome, SoftBlock) and retries < self.max_retries:
            retries += 1
            logger.warning(
                "Checking your browser detected for %s, retrying (%d/%d)",
                label or "request",
                retries,
                self.max_retries,
            )
            outcome = await operation()

        if isinstance(outcome, SoftBlock):
            logger.error(
                "Gave up on %s after %d retries: still blocked",
                label or "request",
                retries,
            )
        return outcome
