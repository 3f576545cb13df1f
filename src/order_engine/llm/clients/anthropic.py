"""Anthropic model client implementation."""

import threading
from collections.abc import Sequence
from hashlib import sha256
from typing import Literal

import anthropic
import anthropic.types

from ..base import ProviderClient
from ...config import EnvField
from ..config import BaseLLMConfig
from ..types import (
    ModelTurn,
    ToolCall,
    ToolCallMessage,
    ToolDefinition,
    ToolResultMessage,
    Transcript,
    Usage,
    UserMessage,
)


class AnthropicConfig(BaseLLMConfig):
    """Configuration for Anthropic provider."""

    provider: Literal["anthropic"] = EnvField("LLM_PROVIDER", default="anthropic")  # pyright: ignore[reportIncompatibleVariableOverride]
    api_key: str = EnvField("ANTHROPIC_API_KEY", exclude=True)


class AnthropicClient(ProviderClient[AnthropicConfig]):
    """Anthropic model client using tool_choice any/tool."""

    _client_cache: dict[str, "AnthropicClient"] = {}
    _cache_lock = threading.Lock()

    def __init__(self, config: AnthropicConfig | None = None):
        """Initialize Anthropic client.

        Args:
            config: Anthropic configuration. If None, creates from environment.

        """
        if config is None:
            config = AnthropicConfig()
        else:
            config = AnthropicConfig.model_validate(config)

        super().__init__(config)

        self.config = config
        if not self.config.api_key:
            raise ValueError(
                "Anthropic API key not found. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key in config."
            )
        self.client = anthropic.AsyncAnthropic(api_key=self.config.api_key)

    @staticmethod
    def _get_cache_key(config: AnthropicConfig) -> str:
        """Generate cache key for a config."""
        config_json = config.model_dump_json(
            include={"provider", "model", "max_concurrency", "timeout_seconds"}
        )
        # api_key is excluded from dumps, so hash it separately
        return sha256((config_json + config.api_key).encode()).hexdigest()

    @staticmethod
    def from_cache(config: AnthropicConfig) -> "AnthropicClient":
        """Get or create client from cache."""
        cache_key = AnthropicClient._get_cache_key(config)
        with AnthropicClient._cache_lock:
            if cache_key not in AnthropicClient._client_cache:
                AnthropicClient._client_cache[cache_key] = AnthropicClient(config)
            return AnthropicClient._client_cache[cache_key]

    async def _generate_tool_call(
        self,
        *,
        model: str,
        transcript: Transcript,
        system_instruction: str | None,
        tools: Sequence[ToolDefinition],
        temperature: float | None = None,
        max_tokens: int | None = None,
        reasoning_effort: str | int | None = None,
    ) -> tuple[ModelTurn, Usage]:
        """Generate one forced tool use using the Anthropic API.

        Thinking is not allowed when tool use is forced, so `reasoning_effort`
        is ignored.
        """
        anthropic_tools = [
            anthropic.types.ToolParam(
                name=t.name, description=t.description, input_schema=t.parameters
            )
            for t in tools
        ]

        if len(tools) == 1:
            tool_choice: anthropic.types.ToolChoiceParam = (
                anthropic.types.ToolChoiceToolParam(
                    type="tool", name=tools[0].name, disable_parallel_tool_use=True
                )
            )
        else:
            tool_choice = anthropic.types.ToolChoiceAnyParam(
                type="any", disable_parallel_tool_use=True
            )

        response = await self.client.messages.create(
            model=model,
            max_tokens=max_tokens or 2000,
            messages=self._convert_transcript(transcript),
            tools=anthropic_tools,
            tool_choice=tool_choice,
            temperature=temperature if temperature is not None else anthropic.NOT_GIVEN,
            system=system_instruction or anthropic.NOT_GIVEN,
            thinking=anthropic.types.ThinkingConfigDisabledParam(type="disabled"),
            stream=False,
        )

        usage = Usage(
            token_count=response.usage.input_tokens + response.usage.output_tokens
            if response.usage
            else 0,
            provider="anthropic",
            model=model,
        )

        text = ""
        for block in response.content:
            if block.type == "tool_use":
                return (
                    ModelTurn(
                        tool_call=ToolCall(
                            id=block.id,
                            name=block.name,
                            arguments=dict(block.input)
                            if isinstance(block.input, dict)
                            else {"__raw__": block.input},
                        )
                    ),
                    usage,
                )
            if block.type == "text":
                text += block.text

        return ModelTurn(text=text or None), usage

    @staticmethod
    def _convert_transcript(
        transcript: Transcript,
    ) -> list[anthropic.types.MessageParam]:
        """Convert a transcript to Anthropic messages."""
        messages: list[anthropic.types.MessageParam] = []

        for message in transcript.messages:
            if isinstance(message, UserMessage):
                messages.append(
                    anthropic.types.MessageParam(role="user", content=message.content)
                )
            elif isinstance(message, ToolCallMessage):
                messages.append(
                    anthropic.types.MessageParam(
                        role="assistant",
                        content=[
                            anthropic.types.ToolUseBlockParam(
                                type="tool_use",
                                id=message.call_id,
                                name=message.name,
                                input=message.arguments,
                            )
                        ],
                    )
                )
            elif isinstance(message, ToolResultMessage):
                messages.append(
                    anthropic.types.MessageParam(
                        role="user",
                        content=[
                            anthropic.types.ToolResultBlockParam(
                                type="tool_result",
                                tool_use_id=message.call_id,
                                content=message.content,
                            )
                        ],
                    )
                )

        return messages
