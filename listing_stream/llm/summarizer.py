"""Shorten scraped product descriptions with an LLM.

The summariser talks to OpenRouter through its OpenAI-compatible API using
LangChain's ``ChatOpenAI``.  It fails open: when no API key is configured,
or when the call errors or comes back empty, the original text is returned.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from listing_stream.config import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that summarizes long product descriptions into "
    "short, clear, and simple text for e-commerce. Output ONLY the summary, no "
    "introductions or extra commentary."
)


def build_prompt(description: str, max_chars: int) -> str:
    """User prompt for *description*, cut to at most *max_chars* characters."""
    prompt = f"Summarize the following product description:\n {description}"
    return prompt[:max_chars]


class DescriptionSummarizer:
    """Async ``summarize(text) -> text`` that never raises."""

    def __init__(self, settings: Settings, llm: Any = None) -> None:
        self.settings = settings
        self._llm = llm

    @property
    def enabled(self) -> bool:
        return self._llm is not None or self.settings.summarizer_enabled

    def _get_llm(self) -> Any:
        """Return the chat model, building it on first use."""
        if self._llm is None:
            from langchain_openai import ChatOpenAI

            self._llm = ChatOpenAI(
                model=self.settings.summary_model,
                api_key=self.settings.openrouter_api_key,
                base_url=self.settings.openrouter_base_url,
                max_tokens=self.settings.max_output_tokens,
                temperature=0,
            )
        return self._llm

    async def summarize(self, description: str) -> str:
        if not self.enabled or not description.strip():
            return description

        messages = [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=build_prompt(description, self.settings.max_input_chars)),
        ]
        try:
            response = await self._get_llm().ainvoke(messages)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed summarising description: %s", exc, exc_info=True)
            return description

        summary = response.content if hasattr(response, "content") else str(response)
        if not isinstance(summary, str) or not summary.strip():
            return description
        return summary.strip()
