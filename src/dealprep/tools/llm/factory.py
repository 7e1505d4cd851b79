"""Build an LLM adapter from configuration."""

from dealprep.config import LLMConfig
from dealprep.tools.llm.adapters.anthropic import AnthropicAdapter
from dealprep.tools.llm.adapters.base import LLMAdapter
from dealprep.tools.llm.adapters.fake import FakeAdapter


def create_llm_adapter(llm_config: LLMConfig) -> LLMAdapter:
    """Create the adapter named by ``llm_config.provider``.

    Raises:
        ValueError: If the provider is unknown.
    """
    if llm_config.provider == "anthropic":
        return AnthropicAdapter(
            api_key=llm_config.api_key,
            model=llm_config.model,
            temperature=llm_config.temperature,
            max_tokens=llm_config.max_tokens,
            timeout_s=llm_config.timeout_s,
        )
    if llm_config.provider == "fake":
        return FakeAdapter()
    raise ValueError(f"Unknown LLM provider: {llm_config.provider}")
