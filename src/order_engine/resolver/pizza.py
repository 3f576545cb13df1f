"""Pizza customization layout and topping surcharge.

A pizza's customizations are parsed once into either a `WholePizza` or a
`SplitPizza`. Pricing only ever sees a parsed layout, so it never has to
re-check the half/whole rules.
"""

from collections import Counter
from typing import Literal

from pydantic import BaseModel

from ..shared.errors import ErrorCode, ValidationErrorDetail
from ..shared.models import (
    CatalogProduct,
    CustomizationAction,
    CustomizationKind,
    PizzaConfiguration,
    PizzaCustomization,
    PizzaHalf,
    ProposedPizzaCustomization,
)

HALF_LABELS = {PizzaHalf.HALF_1: "first half", PizzaHalf.HALF_2: "second half"}


class PizzaTopping(BaseModel):
    """A catalog customization together with what to do with it."""

    customization: PizzaCustomization
    half: PizzaHalf
    action: CustomizationAction

    @property
    def counted_value(self) -> int:
        """Topping value counted toward the surcharge. Removals never reduce it."""
        if self.action == CustomizationAction.ADD:
            return self.customization.topping_value
        return 0


class WholePizza(BaseModel):
    """Every customization applies to the whole pizza."""

    kind: Literal["whole"] = "whole"
    toppings: list[PizzaTopping]


class SplitPizza(BaseModel):
    """Customizations are expressed per half."""

    kind: Literal["split"] = "split"
    half_1: list[PizzaTopping]
    half_2: list[PizzaTopping]


PizzaLayout = WholePizza | SplitPizza


def _section_surcharge(
    toppings: list[PizzaTopping], included_toppings: int, unit_cost: float
) -> float:
    total = sum(t.counted_value for t in toppings)
    if total <= included_toppings:
        return 0.0
    return (total - included_toppings) * unit_cost


def pizza_surcharge(layout: PizzaLayout, config: PizzaConfiguration) -> float:
    """Extra cost for toppings over the included threshold.

    Each half of a split pizza is measured against the full threshold but
    charged half the per-unit cost, since a half topping covers half the area.
    """
    if isinstance(layout, WholePizza):
        return _section_surcharge(
            layout.toppings, config.included_toppings, config.extra_topping_cost
        )
    half_cost = config.extra_topping_cost / 2
    return _section_surcharge(
        layout.half_1, config.included_toppings, half_cost
    ) + _section_surcharge(layout.half_2, config.included_toppings, half_cost)


def parse_pizza_layout(
    product: CatalogProduct,
    selections: list[ProposedPizzaCustomization],
    item_index: int,
) -> tuple[PizzaLayout | None, list[ValidationErrorDetail]]:
    """Validate a pizza's customizations and build its layout.

    All problems are collected; the layout is None whenever any were found.
    """
    errors: list[ValidationErrorDetail] = []
    available = {c.id: c for c in product.pizza_customizations}

    resolved: list[tuple[ProposedPizzaCustomization, PizzaCustomization]] = []
    for selection in selections:
        customization = available.get(selection.customization_id)
        if customization is None or not customization.is_active:
            item_name = (
                customization.name
                if customization is not None
                else f"customization with ID {selection.customization_id}"
            )
            errors.append(
                ValidationErrorDetail(
                    code=ErrorCode.ITEM_NOT_AVAILABLE,
                    message=f"The pizza customization '{item_name}' is not available.",
                    context={
                        "item_name": item_name,
                        "item_type": "pizza_customization",
                        "product_id": product.id,
                        "product_name": product.name,
                        "customization_id": selection.customization_id,
                    },
                    item_index=item_index,
                )
            )
            continue
        resolved.append((selection, customization))

    if not any(s.action == CustomizationAction.ADD for s in selections):
        errors.append(
            ValidationErrorDetail(
                code=ErrorCode.PIZZA_CUSTOMIZATION_REQUIRED,
                message=f"To order '{product.name}' choose at least one flavor or ingredient.",
                context={
                    "product_id": product.id,
                    "product_name": product.name,
                    "flavor_names": [
                        c.name
                        for c in product.pizza_customizations
                        if c.is_active and c.kind == CustomizationKind.FLAVOR
                    ],
                },
                item_index=item_index,
            )
        )

    has_full = any(s.half == PizzaHalf.FULL for s in selections)
    is_split = any(s.half != PizzaHalf.FULL for s in selections)
    if has_full and is_split:
        errors.append(
            ValidationErrorDetail(
                code=ErrorCode.INVALID_PIZZA_CONFIGURATION,
                message=(
                    f"'{product.name}' mixes whole-pizza and half-pizza choices. "
                    "Choose a single pizza or say what goes on each half."
                ),
                context={
                    "product_id": product.id,
                    "product_name": product.name,
                    "reason": "FULL_HALF_CONFLICT",
                },
                item_index=item_index,
            )
        )

    flavor_counts = Counter(
        s.half
        for s, c in resolved
        if s.action == CustomizationAction.ADD and c.kind == CustomizationKind.FLAVOR
    )
    for half, count in flavor_counts.items():
        if count <= 1:
            continue
        section = HALF_LABELS.get(half, "pizza")
        errors.append(
            ValidationErrorDetail(
                code=ErrorCode.INVALID_PIZZA_CONFIGURATION,
                message=(
                    f"Only one flavor can be chosen for the {section} of "
                    f"'{product.name}', got {count}."
                ),
                context={
                    "product_id": product.id,
                    "product_name": product.name,
                    "reason": "TOO_MANY_FLAVORS",
                    "half": half.value,
                    "flavor_count": count,
                },
                item_index=item_index,
            )
        )

    if errors:
        return None, errors

    if is_split:
        return (
            SplitPizza(
                half_1=[
                    PizzaTopping(customization=c, half=s.half, action=s.action)
                    for s, c in resolved
                    if s.half == PizzaHalf.HALF_1
                ],
                half_2=[
                    PizzaTopping(customization=c, half=s.half, action=s.action)
                    for s, c in resolved
                    if s.half == PizzaHalf.HALF_2
                ],
            ),
            [],
        )
    return (
        WholePizza(
            toppings=[
                PizzaTopping(customization=c, half=s.half, action=s.action)
                for s, c in resolved
            ]
        ),
        [],
    )
