"""Async adapter protocol for LLM providers.

Adapters only translate an LLMRequest into a provider call and normalize the
reply. JSON extraction and brief validation happen in the caller.
"""

from typing import Optional, Protocol, runtime_checkable

from dealprep.tools.llm.types import LLMRequest, LLMResponse


@runtime_checkable
class LLMAdapter(Protocol):
    """Protocol every LLM adapter implements."""

    @property
    def provider(self) -> str:
        """Provider name (e.g. 'anthropic', 'fake')."""
        ...

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request.

        Raises:
            LLMAdapterError: On API errors, timeouts, etc.
        """
        ...


class LLMAdapterError(Exception):
    """Base exception for LLM adapter errors."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        original_error: Optional[Exception] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error
        self.retryable = retryable


class LLMRateLimitError(LLMAdapterError):
    """Rate limit exceeded."""

    def __init__(self, message: str, provider: str, retry_after: Optional[int] = None):
        super().__init__(message, provider, retryable=True)
        self.retry_after = retry_after


class LLMAuthenticationError(LLMAdapterError):
    """Missing or rejected API key."""

    def __init__(self, message: str, provider: str):
        super().__init__(message, provider, retryable=False)


class LLMTimeoutError(LLMAdapterError):
    """Request timed out."""

    def __init__(self, message: str, provider: str, timeout_s: int):
        super().__init__(message, provider, retryable=True)
        self.timeout_s = timeout_s
