"""Tools the language model may call while mapping an order."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..llm.types import ToolDefinition
from ..shared.models import FulfillmentType, ProposedOrderItem

SEARCH_MENU = "search_menu"
MAP_ORDER_ITEMS = "map_order_items"


class SearchMenuArguments(BaseModel):
    """Arguments of the menu lookup tool."""

    query: str = Field(
        min_length=1,
        description="Short description of the product to look for, e.g. 'hawaiian pizza'",
    )


class MapOrderItemsArguments(BaseModel):
    """Arguments of the terminal order mapping tool."""

    order_items: list[ProposedOrderItem] = Field(
        description="Every product the customer asked for, mapped to menu IDs"
    )
    order_type: FulfillmentType | None = Field(
        default=None, description="DELIVERY or TAKE_AWAY, when the customer said so"
    )
    scheduled_at: str | None = Field(
        default=None,
        description="Requested time in 24-hour HH:MM format, or null for as soon as possible",
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Anything that could not be mapped or needs the customer's attention",
    )

    @field_validator("warnings", mode="before")
    @classmethod
    def _split_warnings(cls, value: Any) -> Any:
        # Models sometimes send a single string
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


def _inline_refs(schema: dict[str, Any]) -> dict[str, Any]:
    """Replace local `$ref`s with their definitions so every provider accepts the schema."""
    definitions = schema.get("$defs", {})

    def resolve(node: Any) -> Any:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str) and ref.startswith("#/$defs/"):
                target = dict(definitions[ref.removeprefix("#/$defs/")])
                extras = {k: v for k, v in node.items() if k != "$ref"}
                return resolve(target | extras)
            return {k: resolve(v) for k, v in node.items() if k != "$defs"}
        if isinstance(node, list):
            return [resolve(v) for v in node]
        return node

    return resolve(schema)


def _tool(name: str, description: str, model: type[BaseModel]) -> ToolDefinition:
    tool = ToolDefinition.from_model(name, description, model)
    return tool.model_copy(update={"parameters": _inline_refs(tool.parameters)})


SEARCH_MENU_TOOL = _tool(
    SEARCH_MENU,
    "Look up menu products matching a description. Use it when a product the "
    "customer asked for is not in the candidate menu you were given.",
    SearchMenuArguments,
)

MAP_ORDER_ITEMS_TOOL = _tool(
    MAP_ORDER_ITEMS,
    "Submit the customer's order mapped to menu IDs. Call it exactly once, when "
    "every requested product has been matched or reported in warnings.",
    MapOrderItemsArguments,
)

ORDER_TOOLS = (SEARCH_MENU_TOOL, MAP_ORDER_ITEMS_TOOL)
