"""OpenAI model client implementation."""

import json
import threading
from collections.abc import Sequence
from hashlib import sha256
from typing import Any, Literal

from openai import AsyncOpenAI
from openai.types.chat import (
    ChatCompletionAssistantMessageParam,
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionToolMessageParam,
    ChatCompletionToolParam,
    ChatCompletionUserMessageParam,
)
from openai.types.shared_params import FunctionDefinition

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


class OpenAIConfig(BaseLLMConfig):
    """Configuration for OpenAI provider."""

    provider: Literal["openai"] = EnvField("LLM_PROVIDER", default="openai")  # pyright: ignore[reportIncompatibleVariableOverride]
    api_key: str = EnvField("OPENAI_API_KEY", exclude=True)
    base_url: str | None = EnvField("OPENAI_BASE_URL", default=None)


class OpenAIClient(ProviderClient[OpenAIConfig]):
    """OpenAI model client using chat completions with forced tool choice."""

    _client_cache: dict[str, "OpenAIClient"] = {}
    _cache_lock = threading.Lock()

    def __init__(self, config: OpenAIConfig | None = None):
        """Initialize OpenAI client.

        Args:
            config: OpenAI configuration. If None, creates from environment.

        """
        if config is None:
            config = OpenAIConfig()
        else:
            config = OpenAIConfig.model_validate(config)

        super().__init__(config)

        self.config = config
        if not self.config.api_key:
            raise ValueError(
                "OpenAI API key not found. Set OPENAI_API_KEY environment variable "
                "or pass api_key in config."
            )
        self.client = AsyncOpenAI(
            api_key=self.config.api_key, base_url=self.config.base_url
        )

    @staticmethod
    def _get_cache_key(config: OpenAIConfig) -> str:
        """Generate cache key for a config."""
        config_json = config.model_dump_json(
            include={
                "provider",
                "base_url",
                "model",
                "max_concurrency",
                "timeout_seconds",
            }
        )
        # api_key is excluded from dumps, so hash it separately
        return sha256((config_json + config.api_key).encode()).hexdigest()

    @staticmethod
    def from_cache(config: OpenAIConfig) -> "OpenAIClient":
        """Get or create client from cache."""
        cache_key = OpenAIClient._get_cache_key(config)
        with OpenAIClient._cache_lock:
            if cache_key not in OpenAIClient._client_cache:
                OpenAIClient._client_cache[cache_key] = OpenAIClient(config)
            return OpenAIClient._client_cache[cache_key]

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
        """Generate one forced function call using the OpenAI API."""
        args: dict[str, Any] = {
            "model": model,
            "messages": self._convert_transcript(transcript, system_instruction),
            "tools": [self._convert_tool(t) for t in tools],
            "parallel_tool_calls": False,
        }

        if len(tools) == 1:
            args["tool_choice"] = {
                "type": "function",
                "function": {"name": tools[0].name},
            }
        else:
            args["tool_choice"] = "required"

        # Handle reasoning vs non-reasoning models
        is_reasoning_model = any(
            reasoning_model in model for reasoning_model in ("gpt-5", "o4", "o3", "o1")
        )

        if is_reasoning_model:
            # Reasoning models use max_completion_tokens
            if max_tokens:
                args["max_completion_tokens"] = max_tokens
            if reasoning_effort is not None and isinstance(reasoning_effort, str):
                if reasoning_effort == "minimal" and "gpt-5" not in model:
                    reasoning_effort = "low"  # o models don't support minimal
                args["reasoning_effort"] = reasoning_effort
        else:
            if temperature is not None:
                args["temperature"] = temperature
            if max_tokens is not None:
                args["max_tokens"] = max_tokens

        response = await self.client.chat.completions.create(**args)

        usage = Usage(
            token_count=response.usage.total_tokens if response.usage else 0,
            provider="openai",
            model=model,
        )

        if not response.choices:
            return ModelTurn(), usage

        message = response.choices[0].message
        for tool_call in message.tool_calls or []:
            if tool_call.type != "function":
                continue
            return (
                ModelTurn(
                    tool_call=ToolCall.from_json_arguments(
                        id=tool_call.id,
                        name=tool_call.function.name,
                        arguments=tool_call.function.arguments,
                    )
                ),
                usage,
            )

        return ModelTurn(text=message.content), usage

    @staticmethod
    def _convert_tool(tool: ToolDefinition) -> ChatCompletionToolParam:
        return ChatCompletionToolParam(
            type="function",
            function=FunctionDefinition(
                name=tool.name,
                description=tool.description,
                parameters=tool.parameters,
            ),
        )

    @staticmethod
    def _convert_transcript(
        transcript: Transcript, system_instruction: str | None
    ) -> list[ChatCompletionMessageParam]:
        """Convert a transcript to OpenAI chat messages."""
        messages: list[ChatCompletionMessageParam] = []
        if system_instruction:
            messages.append(
                ChatCompletionSystemMessageParam(
                    role="system", content=system_instruction
                )
            )

        for message in transcript.messages:
            if isinstance(message, UserMessage):
                messages.append(
                    ChatCompletionUserMessageParam(role="user", content=message.content)
                )
            elif isinstance(message, ToolCallMessage):
                messages.append(
                    ChatCompletionAssistantMessageParam(
                        role="assistant",
                        tool_calls=[
                            {
                                "id": message.call_id,
                                "type": "function",
                                "function": {
                                    "name": message.name,
                                    "arguments": json.dumps(
                                        message.arguments, ensure_ascii=False
                                    ),
                                },
                            }
                        ],
                    )
                )
            elif isinstance(message, ToolResultMessage):
                messages.append(
                    ChatCompletionToolMessageParam(
                        role="tool",
                        tool_call_id=message.call_id,
                        content=message.content,
                    )
                )

        return messages
