"""
Chat-completion client for OpenAI-compatible APIs.

Used for both the Perplexity search model and the OpenAI generation model;
Perplexity exposes the same chat completions API under its own base URL.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class ChatError(Exception):
    """A chat completion could not be obtained."""


@dataclass
class ChatResult:
    """Text of the first choice plus bookkeeping from the response."""

    content: str
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None


class ChatClient:
    """
    Thin async wrapper around `openai.AsyncOpenAI`.

    The SDK client is created on first use, so a missing API key only fails
    the request that needs it. SDK retries are disabled; callers decide
    whether anything is retried.
    """

    def __init__(
        self,
        service: str,
        model: str,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        max_completion_tokens: Optional[int] = None,
    ):
        self.service = service
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_completion_tokens = max_completion_tokens
        self._client: Optional[AsyncOpenAI] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ChatError(f"{self.service} API key not configured")
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def complete(self, messages: List[Message], json_mode: bool = False) -> ChatResult:
        """
        Run one chat completion.

        Args:
            messages: Chat messages ({"role": ..., "content": ...})
            json_mode: Ask the model for a JSON object response

        Returns:
            ChatResult for the first choice

        Raises:
            ChatError: On configuration, transport or API errors
        """
        client = self._get_client()
        kwargs = {"model": self.model, "messages": messages}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if self.max_completion_tokens:
            kwargs["max_completion_tokens"] = self.max_completion_tokens

        started = time.perf_counter()
        try:
            response = await client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.error("%s call failed after %.0fms: %s", self.service, duration_ms, e)
            raise ChatError(str(e)) from e

        duration_ms = (time.perf_counter() - started) * 1000
        if not response.choices:
            raise ChatError(f"{self.service} returned no choices")

        choice = response.choices[0]
        usage = response.usage
        result = ChatResult(
            content=choice.message.content or "",
            model=response.model,
            finish_reason=choice.finish_reason,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
        )
        logger.info(
            "%s responded in %.0fms (model=%s, finish=%s, tokens=%s/%s, %d chars)",
            self.service, duration_ms, result.model, result.finish_reason,
            result.prompt_tokens, result.completion_tokens, len(result.content),
        )
        return result

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
