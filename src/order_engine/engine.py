"""Entry point: resolve a customer utterance into a priced order."""

import asyncio
from pathlib import Path

from pydantic import BaseModel

from .catalog.index import CatalogIndex, CatalogSnapshot
from .catalog.loader import load_catalog
from .embedding.base import EmbeddingClient
from .embedding.functional import create_embedding_client
from .llm.base import ProviderClient
from .config import EnvField
from .llm.functional import create_client
from .logger import EngineLogger, LogSink
from .orchestrator.orchestrator import ConversationOrchestrator
from .resolver.resolver import OrderItemResolver
from .retrieval.search import RetrievalAlgorithm, create_retriever
from .shared.errors import (
    AggregatedValidationError,
    ErrorCode,
    ProtocolError,
    ResolutionFailure,
    ResolutionSupersededError,
    UpstreamServiceError,
    ValidationErrorDetail,
)
from .shared.models import FulfillmentType, ResolvedOrder

ResolutionOutcome = ResolvedOrder | AggregatedValidationError | ResolutionFailure


class EngineConfig(BaseModel):
    """Settings for the resolution pipeline."""

    max_turns: int = EnvField("ORDER_ENGINE_MAX_TURNS", default=5, ge=1)
    retrieval_top_k: int = EnvField("ORDER_ENGINE_TOP_K", default=15)
    retrieval_algorithm: RetrievalAlgorithm = EnvField(
        "ORDER_ENGINE_RETRIEVAL", default=RetrievalAlgorithm.INDEXED
    )
    upstream_retries: int = EnvField("ORDER_ENGINE_UPSTREAM_RETRIES", default=1, ge=0)
    default_fulfillment_type: FulfillmentType = EnvField(
        "ORDER_ENGINE_DEFAULT_FULFILLMENT", default=FulfillmentType.TAKE_AWAY
    )


class OrderResolutionEngine:
    """Retrieval, tool-calling extraction and validation wired together.

    A request reads one catalog snapshot from start to finish. Requests share
    nothing mutable except the per-conversation task table used by
    `resolve_latest`.
    """

    def __init__(
        self,
        index: CatalogIndex,
        llm_client: ProviderClient,
        embedding_client: EmbeddingClient,
        config: EngineConfig | None = None,
        *,
        log_sink: LogSink | None = None,
    ):
        """Create an engine.

        Args:
            index: Catalog index to resolve against
            llm_client: Client for the mapping conversation
            embedding_client: Client used to embed retrieval queries
            config: Pipeline settings, read from the environment when None
            log_sink: Optional destination for structured logs

        """
        self.index = index
        self.config = config or EngineConfig()
        self.logger = EngineLogger(__name__, log_sink)
        self.retriever = create_retriever(
            self.config.retrieval_algorithm, index, embedding_client
        )
        self.orchestrator = ConversationOrchestrator(
            llm_client,
            self.retriever,
            max_turns=self.config.max_turns,
            top_k=self.config.retrieval_top_k,
        )
        self._in_flight: dict[str, asyncio.Task[ResolutionOutcome]] = {}

    @classmethod
    def from_env(
        cls,
        catalog_path: str | Path,
        *,
        log_sink: LogSink | None = None,
    ) -> "OrderResolutionEngine":
        """Build an engine from a catalog file and environment configuration."""
        index = CatalogIndex.from_snapshot(load_catalog(catalog_path))
        return cls(
            index,
            create_client(),
            create_embedding_client(),
            log_sink=log_sink,
        )

    async def resolve_order_from_text(
        self,
        utterance: str,
        fulfillment_type: FulfillmentType | None = None,
    ) -> ResolutionOutcome:
        """Turn a customer utterance into a priced order or a list of problems.

        Args:
            utterance: What the customer wrote
            fulfillment_type: Order type already chosen by the customer. Takes
                precedence over anything the model extracts.

        Returns:
            A `ResolvedOrder`, an `AggregatedValidationError` listing every
            problem found, or a `ResolutionFailure` when the model broke the
            tool-calling protocol.

        Raises:
            UpstreamServiceError: Embedding or model calls kept failing after
                `upstream_retries` fresh attempts.

        """
        snapshot = self.index.snapshot()
        attempts = self.config.upstream_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self._resolve_once(utterance, fulfillment_type, snapshot)
            except UpstreamServiceError as e:
                if attempt >= attempts:
                    self.logger.error(
                        f"Resolution failed after {attempt} attempt(s): {e}"
                    )
                    raise
                self.logger.warning(
                    f"Upstream failure on attempt {attempt}/{attempts}, retrying: {e}"
                )
        raise AssertionError("unreachable")

    async def _resolve_once(
        self,
        utterance: str,
        fulfillment_type: FulfillmentType | None,
        snapshot: CatalogSnapshot,
    ) -> ResolutionOutcome:
        if not utterance.strip():
            return AggregatedValidationError.from_errors(
                [
                    ValidationErrorDetail(
                        code=ErrorCode.EMPTY_ORDER,
                        message="No products could be identified in the order.",
                    )
                ]
            )

        initial_menu = await self.retriever.retrieve(
            utterance,
            self.config.retrieval_top_k,
            snapshot=snapshot,
            logger=self.logger,
        )
        try:
            extraction = await self.orchestrator.run(
                utterance,
                fulfillment_type=fulfillment_type,
                initial_menu=initial_menu,
                snapshot=snapshot,
                logger=self.logger,
            )
        except ProtocolError as e:
            self.logger.warning(f"Model broke the tool protocol: {e}")
            return ResolutionFailure(
                context={"reason": type(e).__name__, "detail": str(e)}
            )

        return OrderItemResolver(snapshot, self.logger).resolve(
            extraction.items,
            fulfillment_type=fulfillment_type
            or extraction.order_type
            or self.config.default_fulfillment_type,
            scheduled_at=extraction.scheduled_at,
            warnings=extraction.warnings,
        )

    async def resolve_latest(
        self,
        conversation_id: str,
        utterance: str,
        fulfillment_type: FulfillmentType | None = None,
    ) -> ResolutionOutcome:
        """Resolve `utterance`, superseding any in-flight request for the conversation.

        A newer call for the same `conversation_id` cancels this one; the
        superseded caller gets `ResolutionSupersededError` instead of a stale
        result.

        Raises:
            ResolutionSupersededError: A newer request replaced this one.
            UpstreamServiceError: See `resolve_order_from_text`.

        """
        previous = self._in_flight.get(conversation_id)
        if previous is not None and not previous.done():
            self.logger.info(f"Superseding in-flight resolution for {conversation_id}")
            previous.cancel()

        task = asyncio.create_task(
            self.resolve_order_from_text(utterance, fulfillment_type)
        )
        self._in_flight[conversation_id] = task
        try:
            outcome = await task
        except asyncio.CancelledError:
            if self._in_flight.get(conversation_id) is not task:
                raise ResolutionSupersededError(
                    f"Resolution for {conversation_id} was superseded"
                ) from None
            raise
        finally:
            if self._in_flight.get(conversation_id) is task:
                del self._in_flight[conversation_id]

        if self._in_flight.get(conversation_id) not in (None, task):
            raise ResolutionSupersededError(
                f"Resolution for {conversation_id} was superseded"
            )
        return outcome
