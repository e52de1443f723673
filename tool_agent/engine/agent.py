"""Agent — one tool-augmented conversational turn per ``converse`` call."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Mapping

from tool_agent.engine.llm import CompletionProvider
from tool_agent.engine.models import (
    AgentConfig,
    ChatCompletion,
    CompletionParams,
    CompletionRequest,
    CompletionResult,
    HistoryOptions,
    Message,
    aggregate_usage,
    merge_params,
)
from tool_agent.errors import AgentError, ConversationError, ValidationError
from tool_agent.history.interface import ListStore
from tool_agent.history.store import HistoryStore, drop_unpaired_tool_messages
from tool_agent.tools.dispatcher import ToolDispatcher
from tool_agent.tools.registry import ToolRegistry, ToolSelection, ToolSnapshot

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "default"


def resolve_system_instruction(default: str | None, override: str | None) -> str | None:
    """A per-call instruction wins for that call; ``""`` means "none this call"."""
    return default if override is None else override


def apply_system_instruction(messages: list[Message], instruction: str | None) -> list[Message]:
    """Replace a leading system message, or insert one, when *instruction* is non-empty."""
    if not instruction:
        return messages
    system = Message(role="system", content=instruction)
    if messages and messages[0].role == "system":
        messages[0] = system
    else:
        messages.insert(0, system)
    return messages


class Agent:
    """Public API: ``result = await agent.converse("hello", tool_names=[...])``

    Turn phases run strictly in order::

        assemble -> first call -> [dispatch tools -> second call] -> persist

    History is written once, after the last phase succeeds.
    """

    def __init__(
        self,
        config: AgentConfig,
        provider: CompletionProvider,
        registry: ToolRegistry | None = None,
        dispatcher: ToolDispatcher | None = None,
    ) -> None:
        if not config.params.model:
            raise ValidationError("Model is required to initialize the agent instance")
        self._config = config
        self._provider = provider
        self._tools = registry if registry is not None else ToolRegistry()
        self._dispatcher = dispatcher if dispatcher is not None else ToolDispatcher()
        self._history: HistoryStore | None = None

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._tools

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure_tools(self, path: str | os.PathLike[str]) -> ToolSnapshot:
        if not path:
            raise ValidationError("Tools directory path required.")
        return self._tools.load(path)

    def configure_history(
        self,
        store: ListStore | None,
        options: HistoryOptions | Mapping[str, Any] | None = None,
    ) -> None:
        if store is None:
            raise ValidationError("A list store instance is required.")
        self._history = HistoryStore(store)
        if options is not None:
            self._config = self._config.model_copy(
                update={"history": self._config.history.merge(options)}
            )

    # ------------------------------------------------------------------
    # History access
    # ------------------------------------------------------------------

    async def get_history(
        self,
        user_id: str,
        options: HistoryOptions | Mapping[str, Any] | None = None,
    ) -> list[Message]:
        if self._history is None:
            return []
        return await self._history.read(user_id, HistoryOptions().merge(options))

    async def purge_history(self, user_id: str) -> int:
        if self._history is None:
            raise ValidationError("Agent storage is not initialized.")
        return await self._history.purge(user_id)

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    async def converse(
        self,
        message: str,
        system_instruction: str | None = None,
        tool_names: list[str] | None = None,
        custom_params: CompletionParams | Mapping[str, Any] | None = None,
        history: HistoryOptions | Mapping[str, Any] | None = None,
    ) -> CompletionResult:
        try:
            return await self._run_turn(message, system_instruction, tool_names, custom_params, history)
        except Exception as exc:
            raise ConversationError(f"Chat completion failed: {exc}") from exc

    async def _run_turn(
        self,
        message: str,
        system_instruction: str | None,
        tool_names: list[str] | None,
        custom_params: CompletionParams | Mapping[str, Any] | None,
        history: HistoryOptions | Mapping[str, Any] | None,
    ) -> CompletionResult:
        t_start = time.time()

        # 1. Assemble --------------------------------------------------
        params = merge_params(self._config.params, custom_params)
        user_id = params.user or DEFAULT_USER_ID

        history_options = self._config.history.merge(history)
        if self._history is not None and tool_names and history_options.limit:
            # a bounded window may cut a tool request off from its results
            history_options = history_options.merge({"exclude_tool_messages": True})

        messages = await self._context_messages(user_id, history_options)
        apply_system_instruction(
            messages,
            resolve_system_instruction(self._config.system_instruction, system_instruction),
        )

        user_message = Message(role="user", content=message)
        messages.append(user_message)
        new_messages: list[Message] = [user_message]

        selection: ToolSelection | None = None
        if tool_names:
            selection = self._tools.resolve(tool_names)
        tools = selection.definitions if selection is not None else None

        # 2. First call ------------------------------------------------
        response = await self._call_provider(CompletionRequest(params=params, messages=messages, tools=tools))
        completions: list[ChatCompletion] = [response]
        response_message = self._require_message(response, "provider")
        new_messages.append(response_message)

        # 3. Dispatch + second call ------------------------------------
        if response_message.tool_calls and selection is not None:
            messages.append(response_message)
            tool_messages = await self._dispatcher.call(response_message.tool_calls, selection.implementations)
            messages.extend(tool_messages)
            new_messages.extend(tool_messages)

            second = await self._call_provider(CompletionRequest(params=params, messages=messages, tools=tools))
            completions.append(second)
            new_messages.append(self._require_message(second, "second tool query to provider"))

        # 4. Persist ---------------------------------------------------
        if self._history is not None:
            await self._history.append(user_id, new_messages)

        logger.info(
            "turn user=%s calls=%d latency=%.3fs",
            user_id, len(completions), time.time() - t_start,
        )
        return CompletionResult(
            choices=completions[-1].texts(),
            total_usage=aggregate_usage(*(c.usage for c in completions)),
            completion_messages=new_messages,
            completions=completions,
        )

    async def _context_messages(self, user_id: str, options: HistoryOptions) -> list[Message]:
        messages = list(self._config.messages)
        if self._history is not None:
            stored = await self._history.read(user_id, options)
            messages.extend(drop_unpaired_tool_messages(stored))
        return messages

    async def _call_provider(self, request: CompletionRequest) -> ChatCompletion:
        t0 = time.time()
        response = await self._provider.create(request)
        logger.info(
            "llm_call messages=%d tools=%d latency=%.3fs",
            len(request.messages), len(request.tools or []), time.time() - t0,
        )
        return response

    @staticmethod
    def _require_message(response: ChatCompletion, source: str) -> Message:
        message = response.first_message()
        if message is None:
            raise AgentError(f"No response message received from {source}")
        return message
