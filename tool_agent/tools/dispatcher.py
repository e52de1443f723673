"""Tool dispatcher — runs model-issued calls and turns every outcome into a tool message."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
from typing import Mapping

from tool_agent.engine.models import Message, ToolCall
from tool_agent.errors import ValidationError
from tool_agent.tools.registry import ToolImplementation

logger = logging.getLogger(__name__)


class ToolCallFailed(Exception):
    """Internal: a per-call failure that becomes an error payload."""


class ToolDispatcher:
    """Executes a batch of tool calls concurrently.

    Exactly one tool message is produced per call, in input order. Failures
    (unknown tool, bad arguments, exceptions, ``None`` results, timeouts)
    are reported in-band as ``{"error": "..."}`` so the conversation can
    continue.
    """

    def __init__(self, timeout: float | None = 30.0) -> None:
        self._timeout = timeout

    async def call(
        self,
        calls: list[ToolCall],
        implementations: Mapping[str, ToolImplementation],
    ) -> list[Message]:
        if not calls:
            raise ValidationError("No tool calls found in the response message")

        return list(await asyncio.gather(
            *(self._call_one(tc, implementations) for tc in calls)
        ))

    async def _call_one(
        self,
        tool_call: ToolCall,
        implementations: Mapping[str, ToolImplementation],
    ) -> Message:
        name = tool_call.function.name
        t0 = time.time()
        try:
            content = await self._invoke(tool_call, implementations)
        except Exception as exc:
            logger.warning("tool=%s id=%s error=%s", name, tool_call.id, exc)
            content = json.dumps({"error": str(exc) or type(exc).__name__})
        else:
            logger.info("tool=%s id=%s latency=%.3fs OK", name, tool_call.id, time.time() - t0)

        return Message(role="tool", tool_call_id=tool_call.id, content=content)

    async def _invoke(
        self,
        tool_call: ToolCall,
        implementations: Mapping[str, ToolImplementation],
    ) -> str:
        name = tool_call.function.name
        func = implementations.get(name)
        if func is None:
            raise ToolCallFailed(f"Function '{name}' not found")

        raw_args = tool_call.function.arguments or "{}"
        try:
            args = json.loads(raw_args)
        except json.JSONDecodeError as exc:
            raise ToolCallFailed(f"Invalid arguments format for function '{name}': {raw_args}") from exc
        if not isinstance(args, dict):
            raise ToolCallFailed(f"Arguments for function '{name}' must be a JSON object: {raw_args}")

        result = func(args)
        if inspect.isawaitable(result):
            try:
                result = await asyncio.wait_for(result, timeout=self._timeout)
            except asyncio.TimeoutError as exc:
                raise ToolCallFailed(f"Function '{name}' timed out after {self._timeout}s") from exc

        if result is None:
            raise ToolCallFailed(f"Function '{name}' returned no response")
        try:
            return json.dumps(result)
        except (TypeError, ValueError) as exc:
            raise ToolCallFailed(f"Function '{name}' returned a non-serialisable result: {exc}") from exc
