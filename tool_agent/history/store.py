"""Per-user conversation history over a ``ListStore``.

Messages are pushed to the head of ``user:<id>``, so the newest entry sits
at index 0. Reads slice from the head and reverse once to get chronological
order. Concurrent appends for the same user interleave however the backing
store serialises them.
"""

from __future__ import annotations

import logging

from tool_agent.engine.models import HistoryOptions, Message
from tool_agent.errors import HistoryError
from tool_agent.history.interface import ListStore

logger = logging.getLogger(__name__)


def history_key(user_id: str) -> str:
    return f"user:{user_id}"


def is_transcript_message(message: Message) -> bool:
    """User messages and assistant messages that are not tool requests."""
    if message.role == "user":
        return True
    return message.role == "assistant" and not message.tool_calls


def drop_unpaired_tool_messages(messages: list[Message]) -> list[Message]:
    """Remove tool exchanges a bounded window cut in half.

    A tool message is kept only right after the assistant message that
    requested it, and an assistant tool request only when every one of its
    calls has a result.
    """
    out: list[Message] = []
    i = 0
    while i < len(messages):
        message = messages[i]
        if message.role == "tool":
            i += 1
            continue
        if message.role == "assistant" and message.tool_calls:
            j = i + 1
            while j < len(messages) and messages[j].role == "tool":
                j += 1
            answered = {m.tool_call_id for m in messages[i + 1:j]}
            if {tc.id for tc in message.tool_calls} <= answered:
                out.extend(messages[i:j])
            i = j
            continue
        out.append(message)
        i += 1
    return out


class HistoryStore:
    def __init__(self, store: ListStore) -> None:
        self._store = store

    async def append(self, user_id: str, messages: list[Message]) -> int:
        """Persist *messages* in order; a leading system message is dropped."""
        if messages and messages[0].role == "system":
            messages = messages[1:]
        key = history_key(user_id)
        try:
            length = await self._store.push_front(key, *(m.model_dump_json(exclude_none=True) for m in messages))
        except Exception as exc:
            raise HistoryError(f"Error saving chat history of user: {user_id}: {exc}") from exc
        logger.info("history user=%s appended=%d length=%d", user_id, len(messages), length)
        return length

    async def read(self, user_id: str, options: HistoryOptions | None = None) -> list[Message]:
        options = options or HistoryOptions()
        if options.limit == 0:
            return []
        stop = options.limit - 1 if options.limit else -1
        try:
            raw = await self._store.range(history_key(user_id), 0, stop)
        except Exception as exc:
            raise HistoryError(f"Error reading chat history of user: {user_id}: {exc}") from exc

        messages = [Message.model_validate_json(item) for item in reversed(raw)]
        if options.exclude_tool_messages:
            messages = [m for m in messages if is_transcript_message(m)]
        return messages

    async def purge(self, user_id: str) -> int:
        """Delete the whole log; returns how many messages it held."""
        try:
            removed = await self._store.delete(history_key(user_id))
        except Exception as exc:
            raise HistoryError(f"Error deleting chat history of user: {user_id}: {exc}") from exc
        logger.info("history user=%s purged=%d", user_id, removed)
        return removed
