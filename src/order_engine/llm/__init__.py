"""Language model clients with forced function calling."""

from .base import LLMCallLog, ProviderClient
from .config import BaseLLMConfig
from .functional import clear_client_caches, create_client
from .types import (
    ModelTurn,
    ToolCall,
    ToolCallMessage,
    ToolDefinition,
    ToolResultMessage,
    Transcript,
    Usage,
    UserMessage,
)

__all__ = [
    "BaseLLMConfig",
    "LLMCallLog",
    "ModelTurn",
    "ProviderClient",
    "ToolCall",
    "ToolCallMessage",
    "ToolDefinition",
    "ToolResultMessage",
    "Transcript",
    "Usage",
    "UserMessage",
    "clear_client_caches",
    "create_client",
]
