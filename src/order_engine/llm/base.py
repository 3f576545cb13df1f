"""Abstract base class for LLM model clients."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from ..logger import EngineLogger
from ..shared.errors import UpstreamServiceError, UpstreamTimeoutError
from .config import BaseLLMConfig
from .types import ModelTurn, ToolDefinition, Transcript, Usage

TConfig = TypeVar("TConfig", bound=BaseLLMConfig)


class LLMCallLog(BaseModel):
    """Structured log data for an LLM call."""

    type: str = "llm_call"
    success: bool
    provider: str | None
    model: str | None
    duration_ms: float
    token_count: int
    error_message: str | None
    system_instruction: str | None
    transcript_length: int
    allowed_tools: list[str]
    tool_call: dict[str, Any] | None
    text: str | None


class ProviderClient(ABC, Generic[TConfig]):
    """Abstract base class for LLM clients.

    Every client exposes forced function calling over a provider-neutral
    `Transcript`: the model must answer each turn with exactly one call to one
    of the allowed tools. Concurrency is bounded per client by a semaphore and
    every call is bounded by the configured timeout.
    """

    def __init__(self, config: TConfig):
        """Create an instance of a ProviderClient.

        Args:
            config: The llm config model

        """
        self.config = config
        self.provider = config.provider
        self.model = config.model
        self.timeout_seconds = config.timeout_seconds
        self._semaphore = asyncio.Semaphore(config.max_concurrency)

    @abstractmethod
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
        """Run one forced tool-calling turn against the provider.

        Args:
            model: The model to use
            transcript: The conversation so far
            system_instruction: System prompt for the model
            tools: Tools the model must choose from (already filtered to the allow-list)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            reasoning_effort: Reasoning effort level for capable models

        Returns:
            The model turn and token usage

        """
        pass

    async def generate_tool_call(
        self,
        transcript: Transcript,
        *,
        tools: Sequence[ToolDefinition],
        allowed_tools: Sequence[str] | None = None,
        system_instruction: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        reasoning_effort: str | int | None = None,
        logger: EngineLogger | None = None,
        log_metadata: dict[str, Any] | None = None,
    ) -> tuple[ModelTurn, Usage]:
        """Ask the model for exactly one function call.

        Args:
            transcript: The conversation so far
            tools: Tools known to the conversation
            allowed_tools: Names the model may call this turn (defaults to all tools)
            system_instruction: System prompt for the model
            model: The model to use (or default if not provided)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            reasoning_effort: Reasoning effort level for capable models
            logger: Optional EngineLogger to save LLM logs
            log_metadata: Optional metadata to include with LLM logs

        Returns:
            The model turn and token usage

        Raises:
            UpstreamTimeoutError: The call exceeded `timeout_seconds`.
            UpstreamServiceError: The provider call failed.

        """
        model = model or self.model
        if not model:
            raise ValueError("model required when self.model is not set.")

        if allowed_tools is None:
            allowed = list(tools)
        else:
            allowed = [t for t in tools if t.name in set(allowed_tools)]
        if not allowed:
            raise ValueError("At least one allowed tool is required.")

        temperature = temperature if temperature is not None else self.config.temperature
        max_tokens = max_tokens or self.config.max_tokens
        reasoning_effort = reasoning_effort or self.config.reasoning_effort

        async with self._semaphore:
            start_time = time.time()
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    turn, usage = await self._generate_tool_call(
                        model=model,
                        transcript=transcript,
                        system_instruction=system_instruction,
                        tools=allowed,
                        temperature=temperature,
                        max_tokens=max_tokens,
                        reasoning_effort=reasoning_effort,
                    )
            except TimeoutError as e:
                self._log_call(
                    logger,
                    log_metadata,
                    success=False,
                    model=model,
                    start_time=start_time,
                    transcript=transcript,
                    system_instruction=system_instruction,
                    allowed=allowed,
                    error_message=f"timed out after {self.timeout_seconds}s",
                )
                raise UpstreamTimeoutError(
                    f"{self.provider} call timed out after {self.timeout_seconds}s",
                    provider=self.provider,
                ) from e
            except Exception as e:
                self._log_call(
                    logger,
                    log_metadata,
                    success=False,
                    model=model,
                    start_time=start_time,
                    transcript=transcript,
                    system_instruction=system_instruction,
                    allowed=allowed,
                    error_message=str(e),
                )
                if isinstance(e, UpstreamServiceError):
                    raise
                raise UpstreamServiceError(
                    f"{self.provider} API call failed: {e}", provider=self.provider
                ) from e

        self._log_call(
            logger,
            log_metadata,
            success=True,
            model=usage.model,
            start_time=start_time,
            transcript=transcript,
            system_instruction=system_instruction,
            allowed=allowed,
            turn=turn,
            token_count=usage.token_count,
        )
        return turn, usage

    def _log_call(
        self,
        logger: EngineLogger | None,
        log_metadata: dict[str, Any] | None,
        *,
        success: bool,
        model: str,
        start_time: float,
        transcript: Transcript,
        system_instruction: str | None,
        allowed: Sequence[ToolDefinition],
        turn: ModelTurn | None = None,
        token_count: int = 0,
        error_message: str | None = None,
    ) -> None:
        if logger is None:
            return
        log_data = LLMCallLog(
            success=success,
            provider=self.provider,
            model=model,
            duration_ms=(time.time() - start_time) * 1000,
            token_count=token_count,
            error_message=error_message,
            system_instruction=system_instruction,
            transcript_length=len(transcript),
            allowed_tools=[t.name for t in allowed],
            tool_call=turn.tool_call.model_dump()
            if turn is not None and turn.tool_call is not None
            else None,
            text=turn.text if turn is not None else None,
        )
        logger.debug(
            "LLM call succeeded" if success else "LLM call failed",
            data=log_data,
            metadata=log_metadata,
        )
