"""Validation and pricing of proposed order items against the catalog."""

import logging
from collections.abc import Sequence

from ..catalog.index import CatalogSnapshot
from ..logger import EngineLogger
from ..shared.errors import AggregatedValidationError, ErrorCode, ValidationErrorDetail
from ..shared.models import (
    CatalogProduct,
    FulfillmentType,
    Modifier,
    ModifierGroup,
    PizzaConfiguration,
    ProposedOrderItem,
    ResolvedOrder,
    ResolvedOrderItem,
    ResolvedPizzaCustomization,
    Variant,
)
from .pizza import PizzaLayout, SplitPizza, WholePizza, parse_pizza_layout, pizza_surcharge

logger = logging.getLogger(__name__)

DEFAULT_PIZZA_CONFIGURATION = PizzaConfiguration()


def _money(value: float) -> float:
    return round(value, 2)


def _not_available(
    item_index: int,
    item_name: str,
    item_type: str,
    **context,
) -> ValidationErrorDetail:
    return ValidationErrorDetail(
        code=ErrorCode.ITEM_NOT_AVAILABLE,
        message=f"'{item_name}' is not available.",
        context={"item_name": item_name, "item_type": item_type, **context},
        item_index=item_index,
    )


class OrderItemResolver:
    """Checks proposed items against one catalog snapshot and prices them.

    The resolver never stops at the first problem: every item is checked and
    every error is returned together, so the customer can be asked about all of
    them at once. Resolving the same items against the same snapshot always
    gives the same result.
    """

    def __init__(self, snapshot: CatalogSnapshot, logger: EngineLogger | None = None):
        """Create a resolver bound to `snapshot`."""
        self.snapshot = snapshot
        self.logger = logger

    def resolve(
        self,
        items: Sequence[ProposedOrderItem],
        *,
        fulfillment_type: FulfillmentType,
        scheduled_at: str | None = None,
        warnings: Sequence[str] = (),
    ) -> ResolvedOrder | AggregatedValidationError:
        """Validate and price `items`.

        Args:
            items: Items proposed by the language model.
            fulfillment_type: Delivery or take-away; delivery orders are checked
                against the catalog's minimum order value.
            scheduled_at: Requested time, passed through unchanged.
            warnings: Notes from the extraction step, passed through unchanged.

        Returns:
            The priced order, or every validation error found.

        """
        if not items:
            return AggregatedValidationError.from_errors(
                [
                    ValidationErrorDetail(
                        code=ErrorCode.EMPTY_ORDER,
                        message="No products could be identified in the order.",
                    )
                ]
            )

        errors: list[ValidationErrorDetail] = []
        resolved: list[ResolvedOrderItem] = []
        for index, item in enumerate(items):
            resolved_item, item_errors = self.resolve_item(index, item)
            errors.extend(item_errors)
            if resolved_item is not None:
                resolved.append(resolved_item)

        subtotal = _money(sum(i.total_price for i in resolved))

        minimum = self.snapshot.minimum_delivery_order
        if (
            fulfillment_type == FulfillmentType.DELIVERY
            and minimum is not None
            and subtotal < minimum
        ):
            difference = _money(minimum - subtotal)
            errors.append(
                ValidationErrorDetail(
                    code=ErrorCode.MINIMUM_ORDER_VALUE_NOT_MET,
                    message=(
                        f"The minimum delivery order is {minimum:.2f}. "
                        f"The current total is {subtotal:.2f}, {difference:.2f} short."
                    ),
                    context={
                        "current_total": subtotal,
                        "minimum_value": minimum,
                        "difference": difference,
                    },
                )
            )

        if errors:
            self._log_warning(
                f"Order rejected with {len(errors)} error(s): "
                f"{[e.code.value for e in errors]}"
            )
            return AggregatedValidationError.from_errors(errors)

        self._log_info(
            f"Resolved {len(resolved)} item(s) against catalog "
            f"v{self.snapshot.version}, subtotal {subtotal:.2f}"
        )
        return ResolvedOrder(
            items=resolved,
            subtotal=subtotal,
            fulfillment_type=fulfillment_type,
            scheduled_at=scheduled_at,
            warnings=list(warnings),
        )

    def resolve_item(
        self, index: int, item: ProposedOrderItem
    ) -> tuple[ResolvedOrderItem | None, list[ValidationErrorDetail]]:
        """Validate and price one item. The item is None whenever errors are returned."""
        product = self.snapshot.get_product(item.product_id)
        if product is None:
            return None, [
                _not_available(
                    index,
                    f"product with ID {item.product_id}",
                    "product",
                    product_id=item.product_id,
                )
            ]
        if not product.is_active:
            return None, [
                _not_available(index, product.name, "product", product_id=product.id)
            ]

        errors: list[ValidationErrorDetail] = []
        variant = self._check_variant(index, product, item, errors)
        modifiers = self._check_modifiers(index, product, item, errors)
        layout = self._check_pizza(index, product, item, errors)
        if errors:
            return None, errors

        base_price = variant.price if variant is not None else (product.price or 0.0)
        modifiers_price = sum(m.price for m in modifiers)
        pizza_extra_cost = (
            pizza_surcharge(
                layout, product.pizza_configuration or DEFAULT_PIZZA_CONFIGURATION
            )
            if layout is not None
            else 0.0
        )
        unit_price = _money(base_price + modifiers_price + pizza_extra_cost)

        return (
            ResolvedOrderItem(
                product_id=product.id,
                product_name=product.name,
                variant_id=variant.id if variant is not None else None,
                variant_name=variant.name if variant is not None else None,
                quantity=item.quantity,
                modifier_ids=[m.id for m in modifiers],
                modifier_names=[m.name for m in modifiers],
                pizza_layout=layout.kind if layout is not None else None,
                pizza_customizations=_resolved_customizations(layout),
                comments=item.comments,
                base_price=_money(base_price),
                modifiers_price=_money(modifiers_price),
                pizza_extra_cost=_money(pizza_extra_cost),
                unit_price=unit_price,
                total_price=_money(unit_price * item.quantity),
            ),
            [],
        )

    def _check_variant(
        self,
        index: int,
        product: CatalogProduct,
        item: ProposedOrderItem,
        errors: list[ValidationErrorDetail],
    ) -> Variant | None:
        if not product.has_variants:
            if item.variant_id is not None:
                errors.append(
                    _not_available(
                        index,
                        f"variant with ID {item.variant_id}",
                        "variant",
                        product_id=product.id,
                        product_name=product.name,
                        variant_id=item.variant_id,
                    )
                )
            if product.price is None:
                errors.append(
                    _not_available(
                        index,
                        product.name,
                        "product",
                        product_id=product.id,
                        reason="NO_PRICE",
                    )
                )
            return None

        active_variants = [v for v in product.variants if v.is_active]
        if not active_variants:
            errors.append(
                _not_available(
                    index,
                    product.name,
                    "product",
                    product_id=product.id,
                    reason="NO_ACTIVE_VARIANTS",
                )
            )
            return None

        variant = next((v for v in product.variants if v.id == item.variant_id), None)
        if variant is None:
            variant_names = [v.name for v in active_variants]
            errors.append(
                ValidationErrorDetail(
                    code=ErrorCode.VARIANT_REQUIRED,
                    message=(
                        f"Choose an option for '{product.name}': "
                        f"{', '.join(variant_names)}."
                    ),
                    context={
                        "product_id": product.id,
                        "product_name": product.name,
                        "provided_variant_id": item.variant_id,
                        "variant_names": variant_names,
                        "available_variants": [
                            {"id": v.id, "name": v.name, "price": v.price}
                            for v in active_variants
                        ],
                    },
                    item_index=index,
                )
            )
            return None
        if not variant.is_active:
            errors.append(
                _not_available(
                    index,
                    f"{product.name} {variant.name}",
                    "variant",
                    product_id=product.id,
                    product_name=product.name,
                    variant_id=variant.id,
                )
            )
            return None
        return variant

    def _check_modifiers(
        self,
        index: int,
        product: CatalogProduct,
        item: ProposedOrderItem,
        errors: list[ValidationErrorDetail],
    ) -> list[Modifier]:
        by_id: dict[str, tuple[ModifierGroup, Modifier]] = {
            m.id: (g, m) for g in product.modifier_groups for m in g.modifiers
        }

        selected: list[Modifier] = []
        selected_by_group: dict[str, list[Modifier]] = {}
        # Repeated IDs count once
        for modifier_id in dict.fromkeys(item.modifier_ids):
            match = by_id.get(modifier_id)
            if match is None:
                errors.append(
                    _not_available(
                        index,
                        f"modifier with ID {modifier_id}",
                        "modifier",
                        product_id=product.id,
                        product_name=product.name,
                        modifier_id=modifier_id,
                    )
                )
                continue
            group, modifier = match
            if not (group.is_active and modifier.is_active):
                errors.append(
                    _not_available(
                        index,
                        modifier.name,
                        "modifier",
                        product_id=product.id,
                        product_name=product.name,
                        modifier_id=modifier.id,
                        group_name=group.name,
                    )
                )
                continue
            selected.append(modifier)
            selected_by_group.setdefault(group.id, []).append(modifier)

        for group in product.modifier_groups:
            if not group.is_active:
                continue
            chosen = selected_by_group.get(group.id, [])
            context = {
                "product_id": product.id,
                "product_name": product.name,
                "group_name": group.name,
                "option_names": [m.name for m in group.active_modifiers],
                "min": 1 if group.is_required else 0,
                "max": group.allowed_max,
                "selected": len(chosen),
            }
            if group.is_required and not chosen:
                errors.append(
                    ValidationErrorDetail(
                        code=ErrorCode.MODIFIER_GROUP_REQUIRED,
                        message=(
                            f"'{product.name}' needs a choice of {group.name}: "
                            f"{', '.join(context['option_names'])}."
                        ),
                        context=context,
                        item_index=index,
                    )
                )
            elif len(chosen) > group.allowed_max:
                errors.append(
                    ValidationErrorDetail(
                        code=ErrorCode.MODIFIER_SELECTION_COUNT_INVALID,
                        message=(
                            f"At most {group.allowed_max} option(s) of {group.name} can "
                            f"be chosen for '{product.name}', got {len(chosen)}."
                        ),
                        context=context,
                        item_index=index,
                    )
                )
        return selected

    def _check_pizza(
        self,
        index: int,
        product: CatalogProduct,
        item: ProposedOrderItem,
        errors: list[ValidationErrorDetail],
    ) -> PizzaLayout | None:
        if not product.is_pizza:
            if item.pizza_customizations:
                errors.append(
                    ValidationErrorDetail(
                        code=ErrorCode.INVALID_PIZZA_CONFIGURATION,
                        message=f"'{product.name}' does not take pizza flavors or ingredients.",
                        context={
                            "product_id": product.id,
                            "product_name": product.name,
                            "reason": "NOT_A_PIZZA",
                        },
                        item_index=index,
                    )
                )
            return None

        layout, pizza_errors = parse_pizza_layout(
            product, item.pizza_customizations, index
        )
        errors.extend(pizza_errors)
        return layout

    def _log_info(self, message: str) -> None:
        if self.logger is not None:
            self.logger.info(message)
        else:
            logger.info(message)

    def _log_warning(self, message: str) -> None:
        if self.logger is not None:
            self.logger.warning(message)
        else:
            logger.warning(message)


def _resolved_customizations(layout: PizzaLayout | None) -> list[ResolvedPizzaCustomization]:
    if layout is None:
        return []
    if isinstance(layout, WholePizza):
        sections = [layout.toppings]
    elif isinstance(layout, SplitPizza):
        sections = [layout.half_1, layout.half_2]
    else:
        raise TypeError(f"Unexpected pizza layout: {type(layout)}")

    return [
        ResolvedPizzaCustomization(
            customization_id=t.customization.id,
            name=t.customization.name,
            kind=t.customization.kind,
            half=t.half,
            action=t.action,
        )
        for section in sections
        for t in section
    ]


def resolve_order_items(
    items: Sequence[ProposedOrderItem],
    snapshot: CatalogSnapshot,
    *,
    fulfillment_type: FulfillmentType,
    scheduled_at: str | None = None,
    warnings: Sequence[str] = (),
) -> ResolvedOrder | AggregatedValidationError:
    """Validate and price `items` against `snapshot`. See `OrderItemResolver.resolve`."""
    return OrderItemResolver(snapshot).resolve(
        items,
        fulfillment_type=fulfillment_type,
        scheduled_at=scheduled_at,
        warnings=warnings,
    )
