"""Completion provider — ABC, OpenAI implementation, and a scripted mock."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from tool_agent.engine.models import (
    ChatCompletion,
    Choice,
    CompletionRequest,
    CompletionUsage,
    Message,
    ProviderConfig,
)
from tool_agent.errors import ValidationError

logger = logging.getLogger(__name__)


class CompletionProvider(ABC):
    """Abstract chat-completions interface. One round trip per ``create``.

    A response whose first choice carries no message is returned as-is;
    deciding what that means is the caller's job.
    """

    @abstractmethod
    async def create(self, request: CompletionRequest) -> ChatCompletion: ...


# ---------------------------------------------------------------------------
# OpenAI implementation
# ---------------------------------------------------------------------------

class OpenAICompletionProvider(CompletionProvider):
    def __init__(self, config: ProviderConfig) -> None:
        if not config.api_key:
            raise ValidationError("Missing required credentials: OPENAI_API_KEY")

        # Late import so the rest of the package works without openai installed
        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            organization=config.organization,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    async def create(self, request: CompletionRequest) -> ChatCompletion:
        kwargs = request.to_kwargs()
        logger.info(
            "chat.completions.create model=%s messages=%d tools=%d",
            kwargs.get("model"), len(kwargs["messages"]), len(kwargs.get("tools", [])),
        )
        response = await self._client.chat.completions.create(**kwargs)
        return ChatCompletion.model_validate(response.model_dump())


# ---------------------------------------------------------------------------
# Test mock — deterministic, pre-loaded responses
# ---------------------------------------------------------------------------

def make_completion(
    content: str | None = None,
    tool_calls: list[dict] | None = None,
    usage: tuple[int, int] | None = None,
) -> ChatCompletion:
    """Build a single-choice ``ChatCompletion``.

    ``usage`` is ``(prompt_tokens, completion_tokens)``; the total is derived.
    """
    message = Message(role="assistant", content=content, tool_calls=tool_calls)
    return ChatCompletion(
        id="mock-completion",
        model="mock",
        choices=[Choice(index=0, message=message, finish_reason="tool_calls" if tool_calls else "stop")],
        usage=CompletionUsage(
            prompt_tokens=usage[0],
            completion_tokens=usage[1],
            total_tokens=usage[0] + usage[1],
        ) if usage else None,
    )


class MockCompletionProvider(CompletionProvider):
    """Returns pre-configured responses in order and records every request."""

    def __init__(self, responses: list[ChatCompletion | Exception]) -> None:
        self._responses = list(responses)
        self._call_index = 0
        self.requests: list[CompletionRequest] = []

    async def create(self, request: CompletionRequest) -> ChatCompletion:
        self.requests.append(request.model_copy(deep=True))
        if self._call_index >= len(self._responses):
            return make_completion("[mock responses exhausted]")
        result = self._responses[self._call_index]
        self._call_index += 1
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def call_count(self) -> int:
        return self._call_index
