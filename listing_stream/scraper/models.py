"""Data models for the scrape pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

NO_DESCRIPTION = "-"


class ScrapeRequest(BaseModel):
    """Validated input for one scrape run.  Immutable once built."""

    model_config = {"frozen": True}

    search_term: str = Field(min_length=1)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=240)
    fetch_all: bool = False
    fetch_details: bool = False

    @field_validator("search_term", mode="before")
    @classmethod
    def _strip_search_term(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


@dataclass(frozen=True)
class ListingItem:
    """One product card from a search-results page."""

    title: str
    price: str
    link: str
    image_url: str

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "price": self.price,
            "link": self.link,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class DetailedItem(ListingItem):
    """A :class:`ListingItem` enriched with its (summarised) description."""

    description: str = NO_DESCRIPTION

    @classmethod
    def from_listing(cls, item: ListingItem, description: str = NO_DESCRIPTION) -> DetailedItem:
        return cls(**asdict(item), description=description or NO_DESCRIPTION)

    def to_dict(self) -> dict[str, str]:
        data = super().to_dict()
        data["description"] = self.description
        return data


@dataclass(frozen=True)
class PageMeta:
    """Describes the batch of items about to follow for one listing page."""

    page: int
    page_size: int
    item_count: int

    def to_dict(self) -> dict[str, int]:
        return {"page": self.page, "pageSize": self.page_size, "itemCount": self.item_count}


@dataclass(frozen=True)
class DetailPage:
    """What we need from a product detail page."""

    iframe_src: Optional[str] = None


@dataclass(frozen=True)
class EgressIdentity:
    """Proxy + client signature used for exactly one outbound request."""

    user_agent: str
    proxy: Optional[str] = None


# ---------------------------------------------------------------------------
# Fetch outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    body: str
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class SoftBlock:
    """The response was the anti-bot interstitial rather than real content."""

    ok: bool = field(default=False, init=False)


@dataclass(frozen=True)
class HardFailure:
    cause: str
    ok: bool = field(default=False, init=False)


FetchOutcome = Union[Success, SoftBlock, HardFailure]


# ---------------------------------------------------------------------------
# Protocol events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScrapeEvent:
    """A single event on the output stream (``meta``, ``batch`` or ``done``)."""

    name: str
    data: Any
