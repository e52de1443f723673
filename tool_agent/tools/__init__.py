from tool_agent.tools.dispatcher import ToolDispatcher
from tool_agent.tools.registry import ToolRegistry, ToolSelection, ToolSnapshot

__all__ = ["ToolDispatcher", "ToolRegistry", "ToolSelection", "ToolSnapshot"]
