"""Anthropic Claude adapter.

Translates LLMRequest into an ``AsyncAnthropic.messages.create`` call and
normalizes the reply into LLMResponse.
"""

import logging
from typing import Any, Dict, List, Optional

import anthropic

from dealprep.tools.llm.adapters.base import (
    LLMAdapterError,
    LLMAuthenticationError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from dealprep.tools.llm.types import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class AnthropicAdapter:
    """Adapter for Anthropic Claude models.

    Usage:
        adapter = AnthropicAdapter(api_key=config.llm.api_key)
        response = await adapter.complete(request)
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    DEFAULT_MAX_TOKENS = 4096

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout_s: int = 120,
    ):
        self._api_key = api_key
        self._model = model or self.DEFAULT_MODEL
        self._temperature = temperature
        self._max_tokens = max_tokens or self.DEFAULT_MAX_TOKENS
        self._timeout_s = timeout_s
        self._provider = "anthropic"
        self._client: Optional[anthropic.AsyncAnthropic] = None

    @property
    def provider(self) -> str:
        return self._provider

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Create the client on first use so a missing key only fails real calls."""
        if self._client is None:
            if not self._api_key:
                raise LLMAuthenticationError(
                    message="ANTHROPIC_API_KEY not set",
                    provider=self._provider,
                )
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                timeout=self._timeout_s,
            )
        return self._client

    def _build_request_kwargs(self, request: LLMRequest) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [
            {"role": msg.role, "content": msg.content}
            for msg in request.messages
            if msg.role != "system"
        ]
        kwargs: Dict[str, Any] = {
            "model": request.model or self._model,
            "max_tokens": request.max_tokens or self._max_tokens,
            "messages": messages,
        }
        if request.system:
            kwargs["system"] = request.system

        temperature = request.temperature if request.temperature is not None else self._temperature
        if temperature is not None:
            kwargs["temperature"] = temperature
        return kwargs

    def _parse_response(self, response: Any) -> LLMResponse:
        text = "".join(block.text for block in response.content if hasattr(block, "text"))

        usage = None
        if getattr(response, "usage", None) is not None:
            usage = LLMUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )

        return LLMResponse(
            text=text,
            model=response.model,
            provider=self._provider,
            usage=usage,
            raw={"id": response.id, "stop_reason": response.stop_reason},
        )

    def _translate_error(self, e: Exception) -> LLMAdapterError:
        if isinstance(e, anthropic.AuthenticationError):
            return LLMAuthenticationError(
                message=f"Anthropic authentication failed: {e}",
                provider=self._provider,
            )
        if isinstance(e, anthropic.RateLimitError):
            return LLMRateLimitError(
                message=f"Anthropic rate limit exceeded: {e}",
                provider=self._provider,
            )
        if isinstance(e, anthropic.APITimeoutError):
            return LLMTimeoutError(
                message=f"Anthropic request timed out: {e}",
                provider=self._provider,
                timeout_s=self._timeout_s,
            )
        return LLMAdapterError(
            message=f"Anthropic API error: {e}",
            provider=self._provider,
            original_error=e,
            retryable=(getattr(e, "status_code", None) or 500) >= 500,
        )

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request to Anthropic.

        Raises:
            LLMAdapterError: On API errors
        """
        client = self._get_client()
        kwargs = self._build_request_kwargs(request)
        logger.debug(f"Anthropic request model={kwargs['model']} meta={request.metadata}")

        try:
            response = await client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise self._translate_error(e) from e
        return self._parse_response(response)
