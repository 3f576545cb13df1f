"""Forced tool-calling conversation that maps an utterance to proposed items."""

import logging
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from ..catalog.index import CatalogSnapshot
from ..llm.base import ProviderClient
from ..llm.types import ToolCall, ToolResultMessage, Transcript
from ..logger import EngineLogger
from ..retrieval.menu import CandidateMenu
from ..retrieval.search import DEFAULT_TOP_K, SemanticRetriever
from ..shared.errors import (
    MalformedToolArgumentsError,
    MissingToolCallError,
    TurnLimitExceededError,
    UnknownToolError,
)
from ..shared.models import FulfillmentType, ProposedOrderItem
from .prompts import SYSTEM_INSTRUCTION, format_search_result, format_user_message
from .tools import (
    MAP_ORDER_ITEMS,
    ORDER_TOOLS,
    SEARCH_MENU,
    MapOrderItemsArguments,
    SearchMenuArguments,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 5

TArgs = TypeVar("TArgs", bound=BaseModel)


class OrchestratorState(str, Enum):
    """States of one mapping conversation."""

    AWAIT_TOOL_CALL = "AWAIT_TOOL_CALL"
    MENU_LOOKUP = "MENU_LOOKUP"
    TERMINAL = "TERMINAL"


TOOL_STATES = {
    SEARCH_MENU: OrchestratorState.MENU_LOOKUP,
    MAP_ORDER_ITEMS: OrchestratorState.TERMINAL,
}


class ExtractionResult(BaseModel):
    """The structured result of a completed mapping conversation."""

    items: list[ProposedOrderItem]
    order_type: FulfillmentType | None = None
    scheduled_at: str | None = None
    warnings: list[str] = []
    transcript: Transcript
    turns: int


class ConversationOrchestrator:
    """Drives the model through menu lookups until it submits the order.

    Each `run` owns its transcript; nothing is shared between concurrent runs.
    Every model turn must be exactly one call to a known tool. Anything else
    raises a `ProtocolError` subclass and ends the run.
    """

    def __init__(
        self,
        llm_client: ProviderClient,
        retriever: SemanticRetriever,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        top_k: int = DEFAULT_TOP_K,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ):
        """Create an orchestrator.

        Args:
            llm_client: Client used for every model turn
            retriever: Retriever backing the menu lookup tool
            max_turns: Maximum number of model turns per run
            top_k: Number of candidates returned by each menu lookup
            system_instruction: System prompt sent on every turn

        """
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.llm_client = llm_client
        self.retriever = retriever
        self.max_turns = max_turns
        self.top_k = top_k
        self.system_instruction = system_instruction

    async def run(
        self,
        utterance: str,
        *,
        fulfillment_type: FulfillmentType | None = None,
        initial_menu: CandidateMenu | None = None,
        snapshot: CatalogSnapshot | None = None,
        logger: EngineLogger | None = None,
    ) -> ExtractionResult:
        """Run the conversation to its terminal call.

        Args:
            utterance: What the customer wrote
            fulfillment_type: Order type already chosen by the customer
            initial_menu: Candidates retrieved for the utterance, shown up front
            snapshot: Catalog snapshot used for menu lookups
            logger: Optional EngineLogger for model and embedding calls

        Returns:
            The proposed items and order metadata

        Raises:
            MissingToolCallError: The model answered with text.
            UnknownToolError: The model called a tool that does not exist.
            MalformedToolArgumentsError: The call arguments did not fit the tool.
            TurnLimitExceededError: No terminal call within `max_turns`.
            UpstreamServiceError: A model or embedding call failed.

        """
        transcript = Transcript.start(
            format_user_message(utterance, fulfillment_type, initial_menu)
        )
        state = OrchestratorState.AWAIT_TOOL_CALL

        for turn in range(1, self.max_turns + 1):
            model_turn, _ = await self.llm_client.generate_tool_call(
                transcript,
                tools=ORDER_TOOLS,
                system_instruction=self.system_instruction,
                logger=logger,
                log_metadata={"turn": turn, "state": state.value},
            )
            call = model_turn.tool_call
            if call is None:
                raise MissingToolCallError(
                    f"Model answered with text instead of a tool call: {model_turn.text!r}"
                )

            state = TOOL_STATES.get(call.name, OrchestratorState.AWAIT_TOOL_CALL)
            match state:
                case OrchestratorState.MENU_LOOKUP:
                    search = _parse_arguments(call, SearchMenuArguments)
                    menu = await self.retriever.retrieve(
                        search.query, self.top_k, snapshot=snapshot, logger=logger
                    )
                    self._log(
                        logger,
                        f"[Turn {turn}/{self.max_turns}] {SEARCH_MENU}({search.query!r}) "
                        f"returned {len(menu.candidates)} candidates",
                    )
                    transcript = transcript.append(
                        call.to_message(),
                        ToolResultMessage(
                            call_id=call.id,
                            name=call.name,
                            content=format_search_result(menu),
                        ),
                    )
                    state = OrchestratorState.AWAIT_TOOL_CALL
                case OrchestratorState.TERMINAL:
                    mapped = _parse_arguments(call, MapOrderItemsArguments)
                    self._log(
                        logger,
                        f"[Turn {turn}/{self.max_turns}] {MAP_ORDER_ITEMS} proposed "
                        f"{len(mapped.order_items)} item(s)",
                    )
                    return ExtractionResult(
                        items=mapped.order_items,
                        order_type=mapped.order_type,
                        scheduled_at=mapped.scheduled_at,
                        warnings=mapped.warnings,
                        transcript=transcript.append(call.to_message()),
                        turns=turn,
                    )
                case _:
                    raise UnknownToolError(call.name)

        raise TurnLimitExceededError(
            f"No {MAP_ORDER_ITEMS} call within {self.max_turns} turns"
        )

    @staticmethod
    def _log(engine_logger: EngineLogger | None, message: str) -> None:
        if engine_logger is not None:
            engine_logger.info(message)
        else:
            logger.info(message)


def _parse_arguments(call: ToolCall, model: type[TArgs]) -> TArgs:
    if "__raw__" in call.arguments:
        raise MalformedToolArgumentsError(
            f"Arguments for {call.name} are not a JSON object: {call.arguments['__raw__']!r}"
        )
    try:
        return model.model_validate(call.arguments)
    except ValidationError as e:
        raise MalformedToolArgumentsError(
            f"Arguments for {call.name} do not match its schema: {e}"
        ) from e
