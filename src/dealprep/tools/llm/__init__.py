"""LLM access: provider-agnostic types, adapters and JSON extraction."""

from dealprep.tools.llm.adapters import (
    AnthropicAdapter,
    FakeAdapter,
    LLMAdapter,
    LLMAdapterError,
)
from dealprep.tools.llm.factory import create_llm_adapter
from dealprep.tools.llm.structured import StructuredOutputError, extract_json, parse_json_object
from dealprep.tools.llm.types import LLMMessage, LLMRequest, LLMResponse, LLMUsage

__all__ = [
    "AnthropicAdapter",
    "FakeAdapter",
    "LLMAdapter",
    "LLMAdapterError",
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "StructuredOutputError",
    "create_llm_adapter",
    "extract_json",
    "parse_json_object",
]
