"""Egress identity: proxy pool + user-agent rotation.

The pipeline only ever asks for "the next identity"; selection order is this
module's business.
"""

from __future__ import annotations

import itertools
import logging
import random
from pathlib import Path
from typing import Iterable, List, Optional

from listing_stream.scraper.models import EgressIdentity

logger = logging.getLogger(__name__)

DESKTOP_USER_AGENTS: List[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:124.0) Gecko/20100101 Firefox/124.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:124.0) Gecko/20100101 Firefox/124.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36 Edg/124.0.0.0",
]


def load_proxy_file(path: Path) -> List[str]:
    """Read one proxy URL per line; blank lines and ``#`` comments are skipped."""
    if not path.exists():
        logger.warning("Proxy pool file not found: %s", path)
        return []

    proxies = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            proxies.append(line)
    logger.info("Loaded %d proxies from %s", len(proxies), path)
    return proxies


class ProxyPool:
    """Round-robin over the configured proxies.

    An empty pool yields ``None`` (direct connection) instead of failing.
    """

    def __init__(self, proxies: Iterable[str] = ()) -> None:
        self._proxies = list(proxies)
        self._cycle = itertools.cycle(self._proxies) if self._proxies else None

    def __len__(self) -> int:
        return len(self._proxies)

    def next_proxy(self) -> Optional[str]:
        if self._cycle is None:
            return None
        return next(self._cycle)


class IdentityProvider:
    """Hands out a fresh :class:`EgressIdentity` per outbound call."""

    def __init__(
        self,
        proxy_pool: ProxyPool,
        user_agents: List[str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.proxy_pool = proxy_pool
        self.user_agents = user_agents or DESKTOP_USER_AGENTS
        self._rng = rng or random.Random()

    def next_identity(self) -> EgressIdentity:
        return EgressIdentity(
            user_agent=self._rng.choice(self.user_agents),
            proxy=self.proxy_pool.next_proxy(),
        )
