"""HTML extraction: listing pages, detail pages and description frames.

Everything here is pure: a string of HTML in, typed records out.
"""

from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup

from listing_stream.scraper.models import DetailPage, ListingItem

PLACEHOLDER_TITLE = "shop on ebay"

# Anti-bot interstitial signatures
CHALLENGE_TITLE = "Pardon Our Interruption"
CHALLENGE_BODY = "Checking your browser"

_NOISE_TAGS = ["script", "style", "noscript", "meta", "iframe", "link"]
_HIDDEN_SELECTORS = [
    "[onclick]",
    "[onmouseover]",
    '[style*="display:none"]',
    '[aria-hidden="true"]',
]
_AD_SOCIAL_SELECTORS = [
    '[class*="ads"]',
    '[id*="ads"]',
    '[class*="social"]',
    '[id*="social"]',
]
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _text(nodes) -> str:  # type: ignore[no-untyped-def]
    """Concatenated text of every matched node."""
    return "".join(node.get_text() for node in nodes).strip()


def _image_url(card) -> str:  # type: ignore[no-untyped-def]
    """``src`` first, then the lazy-load ``data-src``, else ``"-"``."""
    img = card.select_one(".s-item__image-wrapper img")
    if img is None:
        return "-"
    return img.get("src") or img.get("data-src") or "-"


def _is_valid_title(title: str) -> bool:
    return bool(title) and PLACEHOLDER_TITLE not in title.lower()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_listing(html: str) -> List[ListingItem]:
    """Return the product cards on a search-results page, in document order.

    Cards without a usable title (empty, or the "Shop on eBay" placeholder)
    or without a link are dropped.
    """
    soup = BeautifulSoup(html, "html.parser")
    items: List[ListingItem] = []
    for card in soup.select(".s-item"):
        title = _text(card.select(".s-item__title"))
        link_tag = card.select_one("a.s-item__link")
        link = link_tag.get("href") if link_tag is not None else None

        if not _is_valid_title(title) or not link:
            continue

        items.append(
            ListingItem(
                title=title,
                price=_text(card.select(".s-item__price")),
                link=link,
                image_url=_image_url(card),
            )
        )
    return items


def extract_detail(html: str) -> DetailPage:
    """Find the embedded description frame on a product detail page."""
    soup = BeautifulSoup(html, "html.parser")
    frame = soup.select_one("#desc_ifr")
    src = frame.get("src") if frame is not None else None
    return DetailPage(iframe_src=src or None)


def extract_description_text(html: str) -> str:
    """Strip non-content markup from a description frame and return plain text."""
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(_NOISE_TAGS):
        tag.decompose()
    for selector in _HIDDEN_SELECTORS + _AD_SOCIAL_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()

    container = soup.body or soup
    return _WHITESPACE.sub(" ", container.get_text(separator=" ")).strip()


def is_challenge_page(html: str) -> bool:
    """Return ``True`` if *html* is the anti-bot interstitial."""
    if CHALLENGE_BODY in html:
        return True
    soup = BeautifulSoup(html, "html.parser")
    return soup.title is not None and CHALLENGE_TITLE in soup.title.get_text()
