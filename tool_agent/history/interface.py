"""Ordered list store interface — the persistence seam under HistoryStore."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ListStore(ABC):
    """Async keyed lists with Redis list semantics.

    Swap backends by implementing this ABC. Index arguments to ``range`` are
    inclusive and ``-1`` means "last element", as with ``LRANGE``.
    """

    @abstractmethod
    async def push_front(self, key: str, *values: str) -> int:
        """Push *values* one by one onto the head; return the new length.

        With no values this is a length query.
        """

    @abstractmethod
    async def range(self, key: str, start: int, stop: int) -> list[str | bytes]: ...

    @abstractmethod
    async def delete(self, key: str) -> int:
        """Remove the list; return how many entries it held."""
