"""LLM client used for context summaries."""

from ragconf.llm.client import AsyncTextClient, TextResponse, TokenUsage

__all__ = ["AsyncTextClient", "TextResponse", "TokenUsage"]
