"""Fake LLM adapter for deterministic tests.

Supports queued responses for multi-call scenarios (synthesis then repair),
responses keyed by prompt substring, and configurable failures.
"""

from typing import Callable, Dict, List, Optional

from dealprep.tools.llm.adapters.base import LLMAdapterError
from dealprep.tools.llm.types import LLMRequest, LLMResponse, LLMUsage


class FakeAdapter:
    """Deterministic LLM adapter for testing.

    Usage:
        adapter = FakeAdapter()
        adapter.queue_response(json.dumps(bad_brief))
        adapter.queue_response(json.dumps(good_brief))  # After repair prompt
        response = await adapter.complete(request)
    """

    def __init__(self, default_response: Optional[str] = None):
        self._provider = "fake"
        self._responses: Dict[str, str] = {}
        self._response_queue: List[str] = []
        self._call_history: List[LLMRequest] = []
        self._default_response = default_response or '{"status": "ok"}'
        self._failures_remaining = 0
        self._fail_message = ""
        self._response_fn: Optional[Callable[[LLMRequest], str]] = None

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def call_history(self) -> List[LLMRequest]:
        return self._call_history

    def add_response(self, prompt_contains: str, response: str) -> "FakeAdapter":
        """Answer prompts whose user message contains a substring."""
        self._responses[prompt_contains.lower()] = response
        return self

    def queue_response(self, response: str) -> "FakeAdapter":
        """Add a response to the FIFO queue."""
        self._response_queue.append(response)
        return self

    def set_response_fn(self, fn: Callable[[LLMRequest], str]) -> "FakeAdapter":
        self._response_fn = fn
        return self

    def fail_next(self, times: int = 1, message: str = "Fake error") -> "FakeAdapter":
        """Raise LLMAdapterError on the next ``times`` calls."""
        self._failures_remaining = times
        self._fail_message = message
        return self

    def reset(self) -> "FakeAdapter":
        self._responses.clear()
        self._response_queue.clear()
        self._call_history.clear()
        self._failures_remaining = 0
        self._response_fn = None
        return self

    async def complete(self, request: LLMRequest) -> LLMResponse:
        self._call_history.append(request)

        if self._failures_remaining > 0:
            self._failures_remaining -= 1
            raise LLMAdapterError(message=self._fail_message, provider=self._provider)

        if self._response_fn:
            return self._make_response(self._response_fn(request), request)

        if self._response_queue:
            return self._make_response(self._response_queue.pop(0), request)

        user_content = request.user_content.lower()
        for pattern, response in self._responses.items():
            if pattern in user_content:
                return self._make_response(response, request)

        return self._make_response(self._default_response, request)

    def _make_response(self, text: str, request: LLMRequest) -> LLMResponse:
        prompt_tokens = len(request.user_content.split())
        completion_tokens = len(text.split())
        return LLMResponse(
            text=text,
            model=request.model or "fake-model",
            provider=self._provider,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            raw={"fake": True, "call_count": self.call_count},
        )
