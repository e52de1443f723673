from tool_agent.engine.models import (
    AgentConfig,
    ChatCompletion,
    CompletionParams,
    CompletionRequest,
    CompletionResult,
    CompletionUsage,
    HistoryOptions,
    Message,
    ProviderConfig,
    ToolCall,
    ToolDefinition,
    aggregate_usage,
    merge_params,
)
from tool_agent.engine.llm import CompletionProvider, MockCompletionProvider, OpenAICompletionProvider
from tool_agent.engine.agent import Agent

__all__ = [
    "Agent",
    "AgentConfig",
    "ChatCompletion",
    "CompletionParams",
    "CompletionProvider",
    "CompletionRequest",
    "CompletionResult",
    "CompletionUsage",
    "HistoryOptions",
    "Message",
    "MockCompletionProvider",
    "OpenAICompletionProvider",
    "ProviderConfig",
    "ToolCall",
    "ToolDefinition",
    "aggregate_usage",
    "merge_params",
]
