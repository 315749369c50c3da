"""Short natural-language summary of retrieved context."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ragconf.types import RetrievedDocument

if TYPE_CHECKING:
    from ragconf.llm.client import AsyncTextClient

logger = logging.getLogger(__name__)

NO_CONTEXT_SUMMARY = "No relevant historical context found"

_SYSTEM_PROMPT = (
    "You summarize excerpts from previously processed business documents "
    "so that a document-analysis system can use them as context."
)

_EXCERPT_CHARS = 200
_MAX_EXCERPTS = 3


def template_summary(query: str, count: int) -> str:
    return f"Found {count} relevant historical documents for query '{query}'"


def build_summary_prompt(query: str, documents: Sequence[RetrievedDocument]) -> str:
    excerpts = [
        doc.relevant_chunks[0].text[:_EXCERPT_CHARS]
        for doc in documents
        if doc.relevant_chunks
    ][:_MAX_EXCERPTS]
    lines = "\n".join(f"{i}. {text}..." for i, text in enumerate(excerpts, start=1))
    return (
        f'Based on these relevant document excerpts for the query "{query}":\n\n'
        f"{lines}\n\n"
        "Provide a brief 2-3 sentence summary of the relevant historical context "
        "that could help improve document analysis accuracy."
    )


class ContextSummarizer:
    """Asks an LLM for a summary, falling back to a fixed template.

    The call is bounded by ``timeout`` seconds. Without a client, or when
    the call fails or times out, the template names the document count
    and the query.
    """

    def __init__(
        self,
        client: AsyncTextClient | None = None,
        model: str = "gpt-4.1-mini",
        timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._model = model
        self._timeout = timeout

    async def summarize(self, query: str, documents: Sequence[RetrievedDocument]) -> str:
        if not documents:
            return NO_CONTEXT_SUMMARY
        if self._client is None:
            return template_summary(query, len(documents))

        try:
            response = await asyncio.wait_for(
                self._client.complete(
                    model=self._model,
                    system_prompt=_SYSTEM_PROMPT,
                    user_prompt=build_summary_prompt(query, documents),
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Context summary timed out after %.1fs", self._timeout)
            return template_summary(query, len(documents))
        except Exception as exc:
            logger.warning("Context summary failed: %s", exc)
            return template_summary(query, len(documents))

        return response.content.strip() or template_summary(query, len(documents))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
