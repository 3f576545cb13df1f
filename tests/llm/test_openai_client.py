"""Unit tests for the OpenAI forced tool-calling client."""

import json
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from order_engine.llm.clients.openai import OpenAIClient, OpenAIConfig
from order_engine.llm.types import (
    ToolCallMessage,
    ToolDefinition,
    ToolResultMessage,
    Transcript,
)
from order_engine.orchestrator.tools import MAP_ORDER_ITEMS_TOOL, ORDER_TOOLS


class TestOpenAIConfig:
    """Test OpenAIConfig creation and validation."""

    def test_config_from_env(self):
        """Test creating config from environment variables."""
        env = {
            "LLM_PROVIDER": "openai",
            "OPENAI_API_KEY": "test",
            "LLM_MODEL": "gpt-4o-mini",
            "LLM_TEMPERATURE": "0.1",
            "LLM_TIMEOUT_SECONDS": "12.5",
        }
        with patch.dict(os.environ, env, clear=True):
            config = OpenAIConfig()
            assert config.provider == "openai"
            assert config.api_key == "test"
            assert config.model == "gpt-4o-mini"
            assert config.temperature == 0.1
            assert config.timeout_seconds == 12.5

    def test_config_defaults(self):
        """Test config with defaults."""
        with patch.dict(os.environ, {}, clear=True):
            config = OpenAIConfig(api_key="test")
            assert config.provider == "openai"
            assert config.model is None
            assert config.max_tokens == 2000
            assert config.max_concurrency == 64
            assert config.timeout_seconds == 30.0
            assert config.base_url is None

    def test_api_key_not_serialized(self):
        """The API key never appears in dumps."""
        config = OpenAIConfig(api_key="secret", model="gpt-4o-mini")
        assert "secret" not in config.model_dump_json()


class TestOpenAIClient:
    """Test OpenAIClient request building and response parsing."""

    @pytest.fixture
    def config(self) -> OpenAIConfig:
        """Test configuration with mocked API key."""
        return OpenAIConfig(api_key="test-api-key", model="gpt-4o-mini", temperature=0.0)

    @pytest.fixture
    def mock_client(self, config: OpenAIConfig):
        """Create an OpenAI client with mocked internal client."""
        with patch("order_engine.llm.clients.openai.AsyncOpenAI"):
            client = OpenAIClient(config)
            client.client = MagicMock()
            yield client

    def _tool_call_response(self, name: str, arguments: str, tool_id: str = "call_123"):
        tool_call = MagicMock()
        tool_call.id = tool_id
        tool_call.type = "function"
        tool_call.function = MagicMock()
        tool_call.function.name = name
        tool_call.function.arguments = arguments

        message = MagicMock()
        message.tool_calls = [tool_call]
        message.content = None

        completion = MagicMock()
        completion.choices = [MagicMock(message=message)]
        completion.usage = MagicMock(total_tokens=77)
        return completion

    def _text_response(self, text: str):
        message = MagicMock()
        message.tool_calls = None
        message.content = text
        completion = MagicMock()
        completion.choices = [MagicMock(message=message)]
        completion.usage = MagicMock(total_tokens=5)
        return completion

    @pytest.mark.asyncio
    async def test_tool_call_is_parsed(self, mock_client: OpenAIClient):
        """The first function call becomes the model turn."""
        mock_client.client.chat.completions.create = AsyncMock(
            return_value=self._tool_call_response(
                "search_menu", json.dumps({"query": "pizza"})
            )
        )

        turn, usage = await mock_client.generate_tool_call(
            Transcript.start("una pizza"), tools=ORDER_TOOLS, system_instruction="map"
        )

        assert turn.tool_call is not None
        assert turn.tool_call.id == "call_123"
        assert turn.tool_call.name == "search_menu"
        assert turn.tool_call.arguments == {"query": "pizza"}
        assert usage.token_count == 77
        assert usage.provider == "openai"

    @pytest.mark.asyncio
    async def test_tool_choice_is_forced(self, mock_client: OpenAIClient):
        """Several tools force 'required'; a single tool is named explicitly."""
        create = AsyncMock(return_value=self._tool_call_response("map_order_items", "{}"))
        mock_client.client.chat.completions.create = create

        await mock_client.generate_tool_call(Transcript.start("x"), tools=ORDER_TOOLS)
        kwargs = create.call_args.kwargs
        assert kwargs["tool_choice"] == "required"
        assert kwargs["parallel_tool_calls"] is False
        assert [t["function"]["name"] for t in kwargs["tools"]] == [
            "search_menu",
            "map_order_items",
        ]

        await mock_client.generate_tool_call(
            Transcript.start("x"), tools=ORDER_TOOLS, allowed_tools=["map_order_items"]
        )
        kwargs = create.call_args.kwargs
        assert kwargs["tool_choice"] == {
            "type": "function",
            "function": {"name": "map_order_items"},
        }
        assert len(kwargs["tools"]) == 1

    @pytest.mark.asyncio
    async def test_malformed_arguments_kept_raw(self, mock_client: OpenAIClient):
        """Undecodable arguments are passed through under __raw__."""
        mock_client.client.chat.completions.create = AsyncMock(
            return_value=self._tool_call_response("map_order_items", "{oops")
        )
        turn, _ = await mock_client.generate_tool_call(
            Transcript.start("x"), tools=ORDER_TOOLS
        )
        assert turn.tool_call.arguments == {"__raw__": "{oops"}

    @pytest.mark.asyncio
    async def test_text_response(self, mock_client: OpenAIClient):
        """A reply without function calls is returned as text."""
        mock_client.client.chat.completions.create = AsyncMock(
            return_value=self._text_response("hola")
        )
        turn, _ = await mock_client.generate_tool_call(
            Transcript.start("x"), tools=ORDER_TOOLS
        )
        assert turn.tool_call is None
        assert turn.text == "hola"

    @pytest.mark.asyncio
    async def test_reasoning_model_arguments(self, mock_client: OpenAIClient):
        """Reasoning models get max_completion_tokens and no temperature."""
        create = AsyncMock(return_value=self._tool_call_response("map_order_items", "{}"))
        mock_client.client.chat.completions.create = create

        await mock_client.generate_tool_call(
            Transcript.start("x"), tools=ORDER_TOOLS, model="o3-mini"
        )
        kwargs = create.call_args.kwargs
        assert kwargs["max_completion_tokens"] == 2000
        assert kwargs["reasoning_effort"] == "low"
        assert "temperature" not in kwargs

    def test_convert_transcript(self):
        """Tool calls and results map to assistant and tool messages."""
        transcript = Transcript.start("una pizza").append(
            ToolCallMessage(call_id="c1", name="search_menu", arguments={"query": "pizza"}),
            ToolResultMessage(call_id="c1", name="search_menu", content="[]"),
        )
        messages = OpenAIClient._convert_transcript(transcript, "system")

        assert [m["role"] for m in messages] == ["system", "user", "assistant", "tool"]
        assert messages[2]["tool_calls"][0]["id"] == "c1"
        assert json.loads(messages[2]["tool_calls"][0]["function"]["arguments"]) == {
            "query": "pizza"
        }
        assert messages[3]["tool_call_id"] == "c1"

    def test_convert_tool(self):
        """Tool schemas are sent as function parameters without $refs."""
        tool = OpenAIClient._convert_tool(MAP_ORDER_ITEMS_TOOL)
        assert tool["function"]["name"] == "map_order_items"
        assert "$defs" not in json.dumps(tool["function"]["parameters"])

    @pytest.mark.asyncio
    async def test_single_custom_tool(self, mock_client: OpenAIClient):
        """Any tool definition can be forced."""
        tool = ToolDefinition(
            name="echo", description="Echo", parameters={"type": "object", "properties": {}}
        )
        create = AsyncMock(return_value=self._tool_call_response("echo", ""))
        mock_client.client.chat.completions.create = create
        turn, _ = await mock_client.generate_tool_call(Transcript.start("x"), tools=[tool])
        assert turn.tool_call.arguments == {}
