"""Async text-generation client wrapping OpenAI's chat API with retry."""

from __future__ import annotations

import logging

import openai
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Transient HTTP status codes that warrant retry
_TRANSIENT_EXCEPTIONS = (
    openai.RateLimitError,
    openai.InternalServerError,
    openai.APIConnectionError,
    openai.APITimeoutError,
)


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class TextResponse(BaseModel):
    content: str = ""
    model: str = ""
    token_usage: TokenUsage = TokenUsage()
    finish_reason: str | None = None


class AsyncTextClient:
    """Sends chat requests to an OpenAI-compatible model."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_EXCEPTIONS),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def complete(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 300,
        temperature: float = 0.0,
    ) -> TextResponse:
        """Send a single chat request and return the parsed response."""
        response = await self._client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        result = self._parse_response(response)
        logger.debug(
            "Completion from %s used %d tokens", result.model, result.token_usage.total_tokens
        )
        return result

    async def close(self) -> None:
        await self._client.close()

    @staticmethod
    def _parse_response(response: openai.types.chat.ChatCompletion) -> TextResponse:
        choice = response.choices[0]
        usage = response.usage
        return TextResponse(
            content=choice.message.content or "",
            model=response.model,
            token_usage=TokenUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            finish_reason=choice.finish_reason,
        )
