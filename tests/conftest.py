"""Shared fixtures.

Environment is pinned before ``listing_stream`` is imported anywhere so the
settings singleton never writes a log file, never calls the real LLM and
never routes through a proxy.
"""

from __future__ import annotations

import os

os.environ["LOG_FILE_DISABLED"] = "true"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["PROXY_POOL"] = ""
os.environ.pop("PROXY_POOL_FILE", None)

from typing import Callable, Iterable, Union  # noqa: E402

import pytest  # noqa: E402

from listing_stream.config import Settings  # noqa: E402
from listing_stream.scraper.models import FetchOutcome, Success  # noqa: E402


# ---------------------------------------------------------------------------
# HTML builders
# ---------------------------------------------------------------------------

def _card(title: str, index: int, *, link: bool = True, lazy_image: bool = False) -> str:
    href = f' href="https://www.ebay.com/itm/{index}"' if link else ""
    img = (
        f'<img data-src="https://i.ebayimg.com/{index}.jpg"/>'
        if lazy_image
        else f'<img src="https://i.ebayimg.com/{index}.jpg"/>'
    )
    return f"""
    <li class="s-item">
      <div class="s-item__image-wrapper">{img}</div>
      <a class="s-item__link"{href}><div class="s-item__title"><span>{title}</span></div></a>
      <span class="s-item__price">${index}.99</span>
    </li>"""


def build_listing_html(titles: Iterable[str], placeholder_first: bool = False) -> str:
    cards = []
    if placeholder_first:
        cards.append(_card("Shop on eBay", 0))
    cards.extend(_card(title, i) for i, title in enumerate(titles, start=1))
    return f"""<html><head><title>eBay search</title></head>
<body><ul class="srp-results">{''.join(cards)}</ul></body></html>"""


def build_detail_html(iframe_src: str | None) -> str:
    frame = f'<iframe id="desc_ifr" src="{iframe_src}"></iframe>' if iframe_src else ""
    return f"<html><head><title>Item</title></head><body><h1>Item</h1>{frame}</body></html>"


CHALLENGE_HTML = (
    "<html><head><title>Pardon Our Interruption...</title></head>"
    "<body><p>Please wait.</p></body></html>"
)


@pytest.fixture()
def listing_html() -> Callable[..., str]:
    return build_listing_html


@pytest.fixture()
def detail_html() -> Callable[[str | None], str]:
    return build_detail_html


@pytest.fixture()
def challenge_html() -> str:
    return CHALLENGE_HTML


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

Responder = Callable[[str], Union[FetchOutcome, str]]


class FakeFetcher:
    """Stands in for :class:`~listing_stream.scraper.fetcher.Fetcher`.

    *responder* maps a URL to an outcome (a bare string is a ``Success``
    body).  Every call is recorded in ``calls``.
    """

    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.calls: list[tuple[str, float]] = []

    async def fetch(self, url: str, timeout: float) -> FetchOutcome:
        self.calls.append((url, timeout))
        outcome = self.responder(url)
        if isinstance(outcome, str):
            return Success(body=outcome)
        return outcome

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


@pytest.fixture()
def fake_fetcher() -> Callable[[Responder], FakeFetcher]:
    return FakeFetcher


@pytest.fixture()
def test_settings() -> Settings:
    """Settings isolated from the environment-derived singleton."""
    return Settings(
        ebay_base_url="https://www.ebay.com",
        max_retries=3,
        batch_size=5,
        proxy_pool=[],
        proxy_pool_file=None,
        openrouter_api_key="",
        log_file=None,
    )
