"""LLM helpers for product description summarisation."""

from listing_stream.llm.summarizer import DescriptionSummarizer

__all__ = ["DescriptionSummarizer"]
