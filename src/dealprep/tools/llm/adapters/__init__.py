"""LLM provider adapters."""

from dealprep.tools.llm.adapters.anthropic import AnthropicAdapter
from dealprep.tools.llm.adapters.base import (
    LLMAdapter,
    LLMAdapterError,
    LLMAuthenticationError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from dealprep.tools.llm.adapters.fake import FakeAdapter

__all__ = [
    "AnthropicAdapter",
    "FakeAdapter",
    "LLMAdapter",
    "LLMAdapterError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMTimeoutError",
]
