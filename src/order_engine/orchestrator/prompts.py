"""Prompt generation for the order mapping conversation."""

from ..retrieval.menu import CandidateMenu
from ..shared.models import FulfillmentType
from .tools import MAP_ORDER_ITEMS, SEARCH_MENU

SYSTEM_INSTRUCTION = f"""
Map the customer's order onto the menu. Do not converse: only map and call a tool.

# Menu format
Each candidate product has:
- id: product ID
- name: product name
- variants: {{id, name, price}} options such as sizes; choose exactly one when present
- modifier_groups: named groups with options {{id, name, price}}; "required" groups need one option, "multiple" groups accept several
- pizza_customizations: for pizzas, flavors (complete recipes) and ingredients {{id, name, kind}}

# Tools
- {SEARCH_MENU}(query): look up products missing from the candidate menu
- {MAP_ORDER_ITEMS}(order_items, order_type, scheduled_at, warnings): submit the final mapping

# Rules
- Only use IDs that appear in the menu you were given or in {SEARCH_MENU} results. Never invent IDs.
- If the customer did not say which variant or option they want, leave it out. Do not guess.
- quantity is the number of units requested, 1 when not stated.
- If an ORDER TYPE is given in the message, use exactly that order_type.
- Put anything you could not map in warnings instead of dropping it silently.

# Pizza customizations
Use half FULL for the whole pizza, HALF_1 and HALF_2 when the customer asks for halves.
Use action ADD to put something on the pizza and REMOVE to take it off.
1. "Large Hawaiian pizza": [{{Hawaiian, FULL, ADD}}]
2. "Pizza half Hawaiian half Pepperoni": [{{Hawaiian, HALF_1, ADD}}, {{Pepperoni, HALF_2, ADD}}]
3. "Hawaiian pizza with extra mushrooms": [{{Hawaiian, FULL, ADD}}, {{Mushrooms, FULL, ADD}}]
4. "Mexican pizza without jalapeño": [{{Mexican, FULL, ADD}}, {{Jalapeño, FULL, REMOVE}}]
5. "Pizza with pepperoni and mushrooms" (no flavor): [{{Pepperoni, FULL, ADD}}, {{Mushrooms, FULL, ADD}}]
""".strip()


def format_user_message(
    utterance: str,
    fulfillment_type: FulfillmentType | None = None,
    menu: CandidateMenu | None = None,
) -> str:
    """Format the opening message of a mapping conversation.

    Args:
        utterance: What the customer wrote
        fulfillment_type: Order type chosen by the customer, if already known
        menu: Candidate menu retrieved for the utterance

    Returns:
        Formatted user message

    """
    parts = [f"ORDER: {utterance.strip()}"]
    if fulfillment_type is not None:
        parts.append(f"ORDER TYPE: {fulfillment_type.value}")
    if menu is not None:
        if menu.is_empty:
            parts.append(
                f"CANDIDATE MENU: no matching products found. Use {SEARCH_MENU} to look them up."
            )
        else:
            parts.append(f"CANDIDATE MENU:\n{menu.to_json()}")
    return "\n\n".join(parts)


def format_search_result(menu: CandidateMenu) -> str:
    """Format the result of a menu lookup for the tool result message."""
    if menu.is_empty:
        return f'No products matched "{menu.query}".'
    return menu.to_json()
