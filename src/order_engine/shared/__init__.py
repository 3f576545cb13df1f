"""Shared models and errors for the order resolution engine."""

from .errors import (
    AggregatedValidationError,
    ErrorCode,
    ResolutionFailure,
    ValidationErrorDetail,
)
from .models import (
    CatalogProduct,
    CustomizationAction,
    CustomizationKind,
    FulfillmentType,
    Modifier,
    ModifierGroup,
    PizzaConfiguration,
    PizzaCustomization,
    PizzaHalf,
    ProposedOrderItem,
    ProposedPizzaCustomization,
    ResolvedOrder,
    ResolvedOrderItem,
    Variant,
)

__all__ = [
    "AggregatedValidationError",
    "CatalogProduct",
    "CustomizationAction",
    "CustomizationKind",
    "ErrorCode",
    "FulfillmentType",
    "Modifier",
    "ModifierGroup",
    "PizzaConfiguration",
    "PizzaCustomization",
    "PizzaHalf",
    "ProposedOrderItem",
    "ProposedPizzaCustomization",
    "ResolutionFailure",
    "ResolvedOrder",
    "ResolvedOrderItem",
    "ValidationErrorDetail",
    "Variant",
]
