"""Gemini model client implementation."""

import threading
from collections.abc import Sequence
from hashlib import sha256
from typing import Any, Literal

import google.genai as genai
import google.genai.types

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


class GeminiConfig(BaseLLMConfig):
    """Configuration for Gemini provider."""

    provider: Literal["gemini"] = EnvField("LLM_PROVIDER", default="gemini")  # pyright: ignore[reportIncompatibleVariableOverride]
    api_key: str = EnvField("GEMINI_API_KEY", "GOOGLE_AI_API_KEY", exclude=True)


class GeminiClient(ProviderClient[GeminiConfig]):
    """Gemini model client using function calling mode ANY."""

    _client_cache: dict[str, "GeminiClient"] = {}
    _cache_lock = threading.Lock()

    def __init__(self, config: GeminiConfig | None = None):
        """Initialize Gemini client.

        Args:
            config: Gemini configuration. If None, creates from environment.

        """
        if config is None:
            config = GeminiConfig()
        else:
            config = GeminiConfig.model_validate(config)

        super().__init__(config)

        self.config = config
        if not self.config.api_key:
            raise ValueError(
                "Gemini API key not found. Set GEMINI_API_KEY environment variable "
                "or pass api_key in config."
            )
        self.client = genai.Client(api_key=self.config.api_key)

    @staticmethod
    def _get_cache_key(config: GeminiConfig) -> str:
        """Generate cache key for a config."""
        config_json = config.model_dump_json(
            include={"provider", "model", "max_concurrency", "timeout_seconds"}
        )
        # api_key is excluded from dumps, so hash it separately
        return sha256((config_json + config.api_key).encode()).hexdigest()

    @staticmethod
    def from_cache(config: GeminiConfig) -> "GeminiClient":
        """Get or create client from cache."""
        cache_key = GeminiClient._get_cache_key(config)
        with GeminiClient._cache_lock:
            if cache_key not in GeminiClient._client_cache:
                GeminiClient._client_cache[cache_key] = GeminiClient(config)
            return GeminiClient._client_cache[cache_key]

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
        """Generate one forced function call using the Gemini API."""
        config = google.genai.types.GenerateContentConfig(
            tools=[
                google.genai.types.Tool(
                    function_declarations=[
                        google.genai.types.FunctionDeclaration(
                            name=t.name,
                            description=t.description,
                            parameters_json_schema=t.parameters,
                        )
                        for t in tools
                    ]
                )
            ],
            tool_config=google.genai.types.ToolConfig(
                function_calling_config=google.genai.types.FunctionCallingConfig(
                    mode=google.genai.types.FunctionCallingConfigMode.ANY,
                    allowed_function_names=[t.name for t in tools],
                )
            ),
            automatic_function_calling=google.genai.types.AutomaticFunctionCallingConfig(
                disable=True
            ),
        )

        if temperature is not None:
            config.temperature = temperature

        if max_tokens is not None:
            config.max_output_tokens = max_tokens

        # Handle reasoning effort -> thinking config
        if reasoning_effort is not None:
            if isinstance(reasoning_effort, str):
                reasoning_effort = 0  # "minimal" and other labels disable thinking

            if reasoning_effort >= -1 and "2.5" in model:
                config.thinking_config = google.genai.types.ThinkingConfig(
                    thinking_budget=reasoning_effort
                )

        if system_instruction:
            config.system_instruction = system_instruction

        args: dict[str, Any] = {
            "model": model,
            "contents": self._convert_transcript(transcript),
            "config": config,
        }

        response = await self.client.aio.models.generate_content(**args)

        token_count = 0
        if response.usage_metadata and response.usage_metadata.total_token_count:
            token_count = response.usage_metadata.total_token_count

        usage = Usage(token_count=token_count, provider="gemini", model=model)

        function_calls = response.function_calls or []
        if function_calls:
            call = function_calls[0]
            tool_call = ToolCall(name=call.name or "", arguments=dict(call.args or {}))
            if call.id:
                tool_call = tool_call.model_copy(update={"id": call.id})
            return ModelTurn(tool_call=tool_call), usage

        return ModelTurn(text=response.text), usage

    @staticmethod
    def _convert_transcript(
        transcript: Transcript,
    ) -> list[google.genai.types.Content]:
        """Convert a transcript to Gemini Content objects."""
        contents: list[google.genai.types.Content] = []

        for message in transcript.messages:
            if isinstance(message, UserMessage):
                contents.append(
                    google.genai.types.Content(
                        role="user",
                        parts=[google.genai.types.Part(text=message.content)],
                    )
                )
            elif isinstance(message, ToolCallMessage):
                contents.append(
                    google.genai.types.Content(
                        role="model",
                        parts=[
                            google.genai.types.Part(
                                function_call=google.genai.types.FunctionCall(
                                    id=message.call_id,
                                    name=message.name,
                                    args=message.arguments,
                                )
                            )
                        ],
                    )
                )
            elif isinstance(message, ToolResultMessage):
                contents.append(
                    google.genai.types.Content(
                        role="user",
                        parts=[
                            google.genai.types.Part(
                                function_response=google.genai.types.FunctionResponse(
                                    id=message.call_id,
                                    name=message.name,
                                    response={"output": message.content},
                                )
                            )
                        ],
                    )
                )

        return contents
