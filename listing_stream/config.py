"""Centralised settings for the listing-stream service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Marketplace
    # ------------------------------------------------------------------
    ebay_base_url: str = field(
        default_factory=lambda: os.environ.get("EBAY_BASE_URL", "https://www.ebay.com")
    )
    default_page_size: int = field(
        default_factory=lambda: int(os.environ.get("DEFAULT_PAGE_SIZE", "10"))
    )
    max_get_all_page_size: int = field(
        default_factory=lambda: int(os.environ.get("MAX_GET_ALL_PAGES_SIZE", "240"))
    )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    listing_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LISTING_TIMEOUT", "20.0"))
    )
    detail_timeout: float = field(
        default_factory=lambda: float(os.environ.get("DETAIL_TIMEOUT", "60.0"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RETRIES", "3"))
    )
    batch_size: int = field(
        default_factory=lambda: int(os.environ.get("BATCH_SIZE", "5"))
    )

    # ------------------------------------------------------------------
    # Egress identity
    # ------------------------------------------------------------------
    proxy_pool: list[str] = field(
        default_factory=lambda: [
            p.strip()
            for p in os.environ.get("PROXY_POOL", "").split(",")
            if p.strip()
        ]
    )
    proxy_pool_file: Path | None = field(
        default_factory=lambda: (
            Path(os.environ["PROXY_POOL_FILE"]) if os.environ.get("PROXY_POOL_FILE") else None
        )
    )

    # ------------------------------------------------------------------
    # Description summariser (OpenRouter, OpenAI-compatible API)
    # ------------------------------------------------------------------
    openrouter_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENROUTER_API_KEY", "")
    )
    openrouter_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
        )
    )
    summary_model: str = field(
        default_factory=lambda: os.environ.get(
            "SUMMARY_MODEL", "deepseek/deepseek-r1-0528:free"
        )
    )
    max_input_chars: int = field(
        default_factory=lambda: int(os.environ.get("MAX_INPUT_CHARS", "8000"))
    )
    max_output_tokens: int = field(
        default_factory=lambda: int(os.environ.get("MAX_OUTPUT_TOKENS", "300"))
    )

    # ------------------------------------------------------------------
    # Logging / server
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    log_file: Path | None = field(
        default_factory=lambda: (
            None
            if _env_bool("LOG_FILE_DISABLED")
            else Path(os.environ.get("LOG_FILE", "logs/main.log"))
        )
    )
    host: str = field(default_factory=lambda: os.environ.get("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "4000")))

    @property
    def summarizer_enabled(self) -> bool:
        """The summariser only calls out when an API key is configured."""
        return bool(self.openrouter_api_key)


# Module-level singleton; import this at process start-up only:
#   from listing_stream.config import settings
settings = Settings()
