"""Core data models — no internal dependencies beyond errors, only Pydantic + stdlib."""

from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from tool_agent.errors import ValidationError


def describe_validation_error(exc: PydanticValidationError) -> str:
    """Render the first pydantic error as ``loc: message``."""
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

class FunctionCall(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    arguments: str = ""


class ToolCall(BaseModel):
    """A single tool/function call requested by the model."""
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str = "function"
    function: FunctionCall


class Message(BaseModel):
    """One chat message. Provider-specific extra fields are dropped."""
    model_config = ConfigDict(extra="ignore")

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[dict[str, Any]] | None = None
    name: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Tool schemas
# ---------------------------------------------------------------------------

class FunctionDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: StrictStr = Field(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
    description: StrictStr | None = None
    parameters: dict[str, Any] | None = None
    strict: StrictBool | None = None

    @field_validator("parameters", mode="before")
    @classmethod
    def _parameters_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Function parameters must be a non-null object")
        return value


class ToolDefinition(BaseModel):
    """OpenAI-compatible ``{"type": "function", "function": {...}}`` schema."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["function"]
    function: FunctionDefinition

    @property
    def name(self) -> str:
        return self.function.name

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------

class CompletionParams(BaseModel):
    """Model id plus every chat-completions generation parameter.

    Only explicitly set fields travel to the provider, so an unset field
    keeps the provider's own default.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    model: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    max_completion_tokens: int | None = None
    n: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    tool_choice: str | dict[str, Any] | None = None
    parallel_tool_calls: bool | None = None
    response_format: dict[str, Any] | None = None
    logit_bias: dict[str, int] | None = None
    logprobs: bool | None = None
    top_logprobs: int | None = None
    metadata: dict[str, str] | None = None
    stop: str | list[str] | None = None
    seed: int | None = None
    service_tier: str | None = None
    store: bool | None = None
    user: str | None = None
    modalities: list[str] | None = None
    audio: dict[str, Any] | None = None
    prediction: dict[str, Any] | None = None


def merge_params(
    defaults: CompletionParams,
    overrides: CompletionParams | Mapping[str, Any] | None = None,
) -> CompletionParams:
    """Return *defaults* with every key present in *overrides* replaced.

    Keys explicitly set to ``None`` in *overrides* clear the default.
    """
    if not overrides:
        return defaults
    if isinstance(overrides, CompletionParams):
        overrides = overrides.model_dump(exclude_unset=True)
    merged = {**defaults.model_dump(exclude_unset=True), **dict(overrides)}
    try:
        return CompletionParams.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid completion parameters: {describe_validation_error(exc)}") from exc


class CompletionRequest(BaseModel):
    params: CompletionParams
    messages: list[Message]
    tools: list[ToolDefinition] | None = None

    def to_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``chat.completions.create``."""
        kwargs = self.params.model_dump(exclude_none=True)
        kwargs["messages"] = [m.to_wire() for m in self.messages]
        if self.tools:
            kwargs["tools"] = [t.to_wire() for t in self.tools]
        else:
            # the API rejects tool policies without tools
            kwargs.pop("tool_choice", None)
            kwargs.pop("parallel_tool_calls", None)
        return kwargs


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class CompletionUsage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


def aggregate_usage(*usages: CompletionUsage | None) -> CompletionUsage:
    """Field-wise sum; a missing usage counts as zero."""
    present = [u for u in usages if u is not None]
    return CompletionUsage(
        prompt_tokens=sum(u.prompt_tokens for u in present),
        completion_tokens=sum(u.completion_tokens for u in present),
        total_tokens=sum(u.total_tokens for u in present),
    )


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: Message | None = None
    finish_reason: str | None = None


class ChatCompletion(BaseModel):
    """Provider response, normalised to the fields the engine reads."""
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    model: str = ""
    choices: list[Choice] = Field(default_factory=list)
    usage: CompletionUsage | None = None

    def first_message(self) -> Message | None:
        if not self.choices:
            return None
        return self.choices[0].message

    def texts(self) -> list[str]:
        """Text of every candidate (``n > 1`` yields several)."""
        out: list[str] = []
        for choice in self.choices:
            content = choice.message.content if choice.message else None
            out.append(content if isinstance(content, str) else "")
        return out


class CompletionResult(BaseModel):
    """Outcome of one turn. Not retained by the engine."""
    choices: list[str]
    total_usage: CompletionUsage
    completion_messages: list[Message]
    completions: list[ChatCompletion]


# ---------------------------------------------------------------------------
# Configuration values
# ---------------------------------------------------------------------------

class HistoryOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    limit: int | None = Field(default=None, ge=0)
    exclude_tool_messages: bool | None = None

    def merge(self, other: HistoryOptions | Mapping[str, Any] | None) -> HistoryOptions:
        """Overlay fields explicitly set on *other*."""
        if other is None:
            return self
        if isinstance(other, HistoryOptions):
            other = other.model_dump(exclude_unset=True)
        try:
            return HistoryOptions.model_validate({**self.model_dump(exclude_unset=True), **dict(other)})
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid history options: {describe_validation_error(exc)}") from exc


class AgentConfig(BaseModel):
    """Immutable agent-level defaults."""
    model_config = ConfigDict(frozen=True)

    params: CompletionParams
    system_instruction: str | None = None
    messages: tuple[Message, ...] = ()
    history: HistoryOptions = Field(default_factory=HistoryOptions)


class ProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str | None = None
    base_url: str | None = None
    organization: str | None = None
    timeout: float = 60.0
    max_retries: int = 0
