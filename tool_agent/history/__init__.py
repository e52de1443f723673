from tool_agent.history.interface import ListStore
from tool_agent.history.in_memory import InMemoryListStore
from tool_agent.history.redis_store import RedisListStore
from tool_agent.history.store import HistoryStore

__all__ = ["HistoryStore", "InMemoryListStore", "ListStore", "RedisListStore"]
