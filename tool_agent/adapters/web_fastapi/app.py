"""FastAPI JSON adapter — thin translation layer, no business logic."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tool_agent.engine.agent import Agent
from tool_agent.engine.models import CompletionResult, HistoryOptions, Message
from tool_agent.errors import AgentError, ConversationError, ToolNotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    message: str
    user_id: str | None = None
    system_instruction: str | None = None
    tool_names: list[str] | None = None
    custom_params: dict[str, Any] | None = None
    history: HistoryOptions | None = None


def _status_for(exc: AgentError) -> int:
    cause = exc.__cause__ if isinstance(exc, ConversationError) else exc
    if isinstance(cause, ValidationError):
        return 400
    if isinstance(cause, ToolNotFoundError):
        return 404
    return 502


def create_app(agent: Agent | None = None) -> FastAPI:
    if agent is None:
        from tool_agent import create_agent

        agent = create_agent()

    app = FastAPI(title="ToolAgent API", version="0.1.0")

    @app.exception_handler(AgentError)
    async def agent_error_handler(request: Request, exc: AgentError) -> JSONResponse:
        status = _status_for(exc)
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, status, exc)
        return JSONResponse({"error": str(exc)}, status_code=status)

    @app.post("/chat", response_model=CompletionResult)
    async def chat(body: ChatRequest) -> CompletionResult:
        custom_params = dict(body.custom_params or {})
        if body.user_id is not None:
            custom_params["user"] = body.user_id
        return await agent.converse(
            body.message,
            system_instruction=body.system_instruction,
            tool_names=body.tool_names,
            custom_params=custom_params or None,
            history=body.history,
        )

    @app.get("/history/{user_id}", response_model=list[Message], response_model_exclude_none=True)
    async def get_history(
        user_id: str,
        limit: int | None = Query(default=None, ge=0),
        exclude_tool_messages: bool | None = None,
    ) -> list[Message]:
        options: dict[str, Any] = {}
        if limit is not None:
            options["limit"] = limit
        if exclude_tool_messages is not None:
            options["exclude_tool_messages"] = exclude_tool_messages
        return await agent.get_history(user_id, options)

    @app.delete("/history/{user_id}")
    async def purge_history(user_id: str) -> JSONResponse:
        removed = await agent.purge_history(user_id)
        return JSONResponse({"removed": removed})

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


def serve() -> None:
    """Entry-point for ``agent-web`` console script."""
    import uvicorn

    uvicorn.run(
        "tool_agent.adapters.web_fastapi.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level="info",
    )
