"""Dict-backed list store — suitable for single-process dev/test."""

from __future__ import annotations

from tool_agent.history.interface import ListStore


class InMemoryListStore(ListStore):
    def __init__(self) -> None:
        self._lists: dict[str, list[str]] = {}

    async def push_front(self, key: str, *values: str) -> int:
        if not values:
            return len(self._lists.get(key, []))
        items = self._lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    async def range(self, key: str, start: int, stop: int) -> list[str | bytes]:
        items = self._lists.get(key, [])
        end = None if stop == -1 else stop + 1
        return list(items[start:end])

    async def delete(self, key: str) -> int:
        return len(self._lists.pop(key, []))
