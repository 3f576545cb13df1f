"""Conversation orchestration with forced tool calling."""

from .orchestrator import (
    DEFAULT_MAX_TURNS,
    ConversationOrchestrator,
    ExtractionResult,
    OrchestratorState,
)
from .prompts import SYSTEM_INSTRUCTION, format_user_message
from .tools import (
    MAP_ORDER_ITEMS,
    MAP_ORDER_ITEMS_TOOL,
    ORDER_TOOLS,
    SEARCH_MENU,
    SEARCH_MENU_TOOL,
    MapOrderItemsArguments,
    SearchMenuArguments,
)

__all__ = [
    "DEFAULT_MAX_TURNS",
    "MAP_ORDER_ITEMS",
    "MAP_ORDER_ITEMS_TOOL",
    "ORDER_TOOLS",
    "SEARCH_MENU",
    "SEARCH_MENU_TOOL",
    "SYSTEM_INSTRUCTION",
    "ConversationOrchestrator",
    "ExtractionResult",
    "MapOrderItemsArguments",
    "OrchestratorState",
    "SearchMenuArguments",
    "format_user_message",
]
