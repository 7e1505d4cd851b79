"""Provider-agnostic LLM request/response types.

Stages build an LLMRequest and hand it to whichever adapter they were
given, so the synthesizer and enrichment code never import a provider SDK.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    """A single chat message."""

    role: Literal["system", "user", "assistant"]
    content: str


class LLMRequest(BaseModel):
    """A completion request.

    ``metadata`` carries run context (run_id, stage) for logging only.
    """

    messages: List[LLMMessage]
    model: Optional[str] = None  # Overrides the adapter's default
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def system(self) -> Optional[str]:
        for msg in self.messages:
            if msg.role == "system":
                return msg.content
        return None

    @property
    def user_content(self) -> str:
        """Content of the last user message, or an empty string."""
        for msg in reversed(self.messages):
            if msg.role == "user":
                return msg.content
        return ""

    def with_metadata(self, **kwargs: Any) -> "LLMRequest":
        return self.model_copy(update={"metadata": {**self.metadata, **kwargs}})


class LLMUsage(BaseModel):
    """Token usage, when the provider reports it."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class LLMResponse(BaseModel):
    """Normalized completion response."""

    text: str
    model: str
    provider: str
    usage: Optional[LLMUsage] = None
    raw: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Compact form for logging."""
        return {
            "text": self.text[:200] + "..." if len(self.text) > 200 else self.text,
            "model": self.model,
            "provider": self.provider,
            "usage": self.usage.model_dump() if self.usage else None,
        }
