"""Provider-neutral transcript and tool-calling types."""

import json
import uuid
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class UserMessage(BaseModel):
    """Text sent on behalf of the customer or the engine."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user"] = "user"
    content: str


class ToolCallMessage(BaseModel):
    """A function call emitted by the model."""

    model_config = ConfigDict(frozen=True)

    role: Literal["tool_call"] = "tool_call"
    call_id: str
    name: str
    arguments: dict[str, Any]


class ToolResultMessage(BaseModel):
    """The result of executing a function call, fed back to the model."""

    model_config = ConfigDict(frozen=True)

    role: Literal["tool_result"] = "tool_result"
    call_id: str
    name: str
    content: str


TranscriptMessage = Annotated[
    UserMessage | ToolCallMessage | ToolResultMessage, Field(discriminator="role")
]


class Transcript(BaseModel):
    """Append-only, ordered conversation with the model.

    `append` returns a new transcript; an existing transcript is never mutated,
    so it is safe to keep references to earlier turns.
    """

    model_config = ConfigDict(frozen=True)

    messages: tuple[TranscriptMessage, ...] = ()

    @classmethod
    def start(cls, content: str) -> "Transcript":
        """Create a transcript holding a single user message."""
        return cls(messages=(UserMessage(content=content),))

    def append(self, *messages: TranscriptMessage) -> "Transcript":
        """Return a new transcript with `messages` appended."""
        return Transcript(messages=self.messages + tuple(messages))

    def __len__(self) -> int:
        return len(self.messages)


class ToolDefinition(BaseModel):
    """A function the model may call."""

    name: str
    description: str
    parameters: dict[str, Any]

    @classmethod
    def from_model(
        cls, name: str, description: str, model: type[BaseModel]
    ) -> "ToolDefinition":
        """Build a tool whose arguments follow a pydantic model's JSON schema."""
        return cls(name=name, description=description, parameters=model.model_json_schema())


class ToolCall(BaseModel):
    """A function call parsed from a provider response."""

    id: str = Field(default_factory=lambda: f"call_{uuid.uuid4().hex[:24]}")
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_json_arguments(cls, *, id: str | None, name: str, arguments: str) -> "ToolCall":
        """Build a call from JSON-encoded arguments.

        Undecodable arguments are kept under `__raw__` so the orchestrator can
        report them as malformed instead of failing inside the provider client.
        """
        try:
            parsed = json.loads(arguments) if arguments else {}
        except json.JSONDecodeError:
            parsed = {"__raw__": arguments}
        if not isinstance(parsed, dict):
            parsed = {"__raw__": arguments}
        if id:
            return cls(id=id, name=name, arguments=parsed)
        return cls(name=name, arguments=parsed)

    def to_message(self) -> ToolCallMessage:
        """Convert to a transcript message."""
        return ToolCallMessage(call_id=self.id, name=self.name, arguments=self.arguments)


class ModelTurn(BaseModel):
    """What the model produced for one turn: a function call or text."""

    tool_call: ToolCall | None = None
    text: str | None = None


class Usage(BaseModel):
    """Usage information about a LLM completion."""

    token_count: int
    provider: str
    model: str
