"""Shared models for the order resolution engine."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FulfillmentType(str, Enum):
    """How the order reaches the customer."""

    DELIVERY = "DELIVERY"
    TAKE_AWAY = "TAKE_AWAY"


class PizzaHalf(str, Enum):
    """Which part of the pizza a customization applies to."""

    FULL = "FULL"
    HALF_1 = "HALF_1"
    HALF_2 = "HALF_2"


class CustomizationAction(str, Enum):
    """Whether a customization is added to or removed from the pizza."""

    ADD = "ADD"
    REMOVE = "REMOVE"


class CustomizationKind(str, Enum):
    """A complete named recipe (FLAVOR) or a single topping (INGREDIENT)."""

    FLAVOR = "FLAVOR"
    INGREDIENT = "INGREDIENT"


# Catalog models are read-only inputs for the duration of a request.
class Variant(BaseModel):
    """A priced variant of a product (e.g. size)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Variant ID")
    name: str = Field(description="Variant name")
    price: float = Field(description="Variant price")
    is_active: bool = Field(default=True, description="Whether it can be ordered")


class Modifier(BaseModel):
    """A single option inside a modifier group."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Modifier ID")
    name: str = Field(description="Modifier name")
    price: float = Field(default=0.0, description="Price added per unit")
    is_active: bool = Field(default=True, description="Whether it can be ordered")


class ModifierGroup(BaseModel):
    """A named set of modifiers with selection rules."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Modifier group ID")
    name: str = Field(description="Modifier group name")
    is_required: bool = Field(default=False)
    allows_multiple: bool = Field(default=False)
    is_active: bool = Field(default=True)
    modifiers: tuple[Modifier, ...] = Field(default=())

    @property
    def allowed_max(self) -> int:
        """Maximum number of selections from this group."""
        if self.allows_multiple:
            return max(len(self.active_modifiers), 1)
        return 1

    @property
    def active_modifiers(self) -> tuple[Modifier, ...]:
        """Modifiers that can currently be selected."""
        return tuple(m for m in self.modifiers if m.is_active)


class PizzaCustomization(BaseModel):
    """A pizza flavor or ingredient with its topping value."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Customization ID")
    name: str = Field(description="Customization name")
    kind: CustomizationKind = Field(description="FLAVOR or INGREDIENT")
    topping_value: int = Field(
        default=0, ge=0, description="Cost units counted against the free threshold"
    )
    is_active: bool = Field(default=True)


class PizzaConfiguration(BaseModel):
    """Topping pricing parameters for a pizza product."""

    model_config = ConfigDict(frozen=True)

    included_toppings: int = Field(default=4, ge=0)
    extra_topping_cost: float = Field(default=20.0, ge=0)


class CatalogProduct(BaseModel):
    """A menu product with its structured fields and precomputed embedding."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Product ID")
    name: str = Field(description="Product name")
    description: str | None = None
    category: str | None = None
    subcategory: str | None = None
    price: float | None = Field(
        default=None, description="Base price, absent when prices live on variants"
    )
    has_variants: bool = False
    is_pizza: bool = False
    is_active: bool = True
    variants: tuple[Variant, ...] = ()
    modifier_groups: tuple[ModifierGroup, ...] = ()
    pizza_customizations: tuple[PizzaCustomization, ...] = ()
    pizza_configuration: PizzaConfiguration | None = None
    embedding: tuple[float, ...] | None = Field(default=None, repr=False)


class ProposedPizzaCustomization(BaseModel):
    """A pizza customization as proposed by the language model."""

    customization_id: str = Field(
        description="ID of the pizza customization (flavor or ingredient)"
    )
    half: PizzaHalf = Field(
        default=PizzaHalf.FULL,
        description="FULL for the whole pizza, HALF_1 or HALF_2 for one half",
    )
    action: CustomizationAction = Field(
        default=CustomizationAction.ADD,
        description="ADD to put it on the pizza, REMOVE to take it off",
    )


class ProposedOrderItem(BaseModel):
    """An order line as proposed by the language model. Untrusted."""

    product_id: str = Field(description="ID of the product")
    variant_id: str | None = Field(
        default=None, description="ID of the chosen variant, when the product has them"
    )
    quantity: int = Field(default=1, ge=1, description="How many units")
    modifier_ids: list[str] = Field(
        default_factory=list, description="IDs of the selected modifiers"
    )
    pizza_customizations: list[ProposedPizzaCustomization] = Field(
        default_factory=list, description="Pizza flavors and ingredients per half"
    )
    comments: str | None = Field(
        default=None, description="Free-text comment from the customer"
    )


class ResolvedPizzaCustomization(BaseModel):
    """A validated pizza customization with display data."""

    customization_id: str
    name: str
    kind: CustomizationKind
    half: PizzaHalf
    action: CustomizationAction


class ResolvedOrderItem(BaseModel):
    """An order line that passed every catalog rule, with its price breakdown."""

    product_id: str
    product_name: str
    variant_id: str | None = None
    variant_name: str | None = None
    quantity: int
    modifier_ids: list[str] = Field(default_factory=list)
    modifier_names: list[str] = Field(default_factory=list)
    pizza_layout: Literal["whole", "split"] | None = None
    pizza_customizations: list[ResolvedPizzaCustomization] = Field(
        default_factory=list
    )
    comments: str | None = None
    base_price: float
    modifiers_price: float
    pizza_extra_cost: float
    unit_price: float
    total_price: float


class ResolvedOrder(BaseModel):
    """A structured order ready to be handed to the persistence layer."""

    status: Literal["resolved"] = "resolved"
    items: list[ResolvedOrderItem]
    subtotal: float
    fulfillment_type: FulfillmentType
    scheduled_at: str | None = None
    warnings: list[str] = Field(default_factory=list)
