"""Error codes, validation payloads and exceptions for order resolution."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable codes for everything that can go wrong in a resolution."""

    EMPTY_ORDER = "EMPTY_ORDER"
    ITEM_NOT_AVAILABLE = "ITEM_NOT_AVAILABLE"
    VARIANT_REQUIRED = "VARIANT_REQUIRED"
    MODIFIER_GROUP_REQUIRED = "MODIFIER_GROUP_REQUIRED"
    MODIFIER_SELECTION_COUNT_INVALID = "MODIFIER_SELECTION_COUNT_INVALID"
    PIZZA_CUSTOMIZATION_REQUIRED = "PIZZA_CUSTOMIZATION_REQUIRED"
    INVALID_PIZZA_CONFIGURATION = "INVALID_PIZZA_CONFIGURATION"
    MINIMUM_ORDER_VALUE_NOT_MET = "MINIMUM_ORDER_VALUE_NOT_MET"
    MULTIPLE_VALIDATION_ERRORS = "MULTIPLE_VALIDATION_ERRORS"
    COULD_NOT_PROCESS = "COULD_NOT_PROCESS"


class ValidationErrorDetail(BaseModel):
    """A single problem found while validating a proposed order."""

    code: ErrorCode
    message: str
    context: dict[str, Any] = Field(default_factory=dict)
    item_index: int | None = Field(
        default=None, description="Index of the offending item, None for order-level"
    )


class AggregatedValidationError(BaseModel):
    """Every validation problem found in one resolution pass.

    Returned as data, never raised, so the conversational layer can render a
    single clarification message.
    """

    status: Literal["invalid"] = "invalid"
    code: Literal[ErrorCode.MULTIPLE_VALIDATION_ERRORS] = (
        ErrorCode.MULTIPLE_VALIDATION_ERRORS
    )
    message: str
    errors: list[ValidationErrorDetail]
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_errors(
        cls, errors: list[ValidationErrorDetail]
    ) -> "AggregatedValidationError":
        """Wrap an ordered list of errors."""
        return cls(
            message=f"Found {len(errors)} problem(s) with the order.",
            errors=errors,
            context={
                "error_count": len(errors),
                "error_summary": [
                    {"code": e.code.value, "item_index": e.item_index} for e in errors
                ],
            },
        )


class ResolutionFailure(BaseModel):
    """Outcome when the language model conversation could not be completed."""

    status: Literal["failed"] = "failed"
    code: Literal[ErrorCode.COULD_NOT_PROCESS] = ErrorCode.COULD_NOT_PROCESS
    message: str = "The order could not be processed."
    context: dict[str, Any] = Field(default_factory=dict)


class OrderEngineError(Exception):
    """Base class for exceptions raised by the engine."""


class ProtocolError(OrderEngineError):
    """The language model broke the tool-calling protocol."""


class MissingToolCallError(ProtocolError):
    """The model answered with text instead of a function call."""


class UnknownToolError(ProtocolError):
    """The model called a function that is not on the allow-list."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool requested by model: {name!r}")
        self.name = name


class MalformedToolArgumentsError(ProtocolError):
    """The function call arguments did not match the tool schema."""


class TurnLimitExceededError(ProtocolError):
    """The conversation did not reach a terminal call within the turn cap."""


class UpstreamServiceError(OrderEngineError):
    """An embedding or language model call failed. Retryable."""

    def __init__(self, message: str, *, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class UpstreamTimeoutError(UpstreamServiceError):
    """An embedding or language model call exceeded its timeout."""


class ResolutionSupersededError(OrderEngineError):
    """A newer request for the same conversation replaced this one."""
