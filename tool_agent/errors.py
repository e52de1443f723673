"""Exception hierarchy — no internal dependencies."""

from __future__ import annotations


class AgentError(Exception):
    """Base class for every error raised by tool_agent."""


class ValidationError(AgentError, ValueError):
    """Bad configuration or arguments; fixable by the caller."""


class ToolNotFoundError(AgentError, LookupError):
    def __init__(self, names: list[str]) -> None:
        self.names = list(names)
        super().__init__(f"The following tools were not found: {', '.join(self.names)}")


class ToolConfigurationError(AgentError):
    """Definitions and implementations do not pair up."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Error on the tools configuration: {message}")


# ---------------------------------------------------------------------------
# Tool source loading
# ---------------------------------------------------------------------------

class ToolSourceError(AgentError):
    """Base for failures while scanning a tools directory."""

    def __init__(self, message: str, path: str) -> None:
        self.path = path
        super().__init__(message)


class DirectoryAccessError(ToolSourceError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Was not possible to access the directory: {path}", path)


class FileReadError(ToolSourceError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Error reading file: {path}", path)


class FileImportError(ToolSourceError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Error importing file: {path}", path)


class InvalidToolError(ToolSourceError):
    def __init__(self, path: str, symbol: str, reason: str) -> None:
        self.symbol = symbol
        super().__init__(f"Invalid tool found at {path}: {symbol}. {reason}", path)


# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------

class HistoryError(AgentError):
    """The backing list store failed; the original exception is chained."""


class ConversationError(AgentError):
    """A turn failed. Nothing was written to history."""
