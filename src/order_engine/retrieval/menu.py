"""Compact menu slices handed to the language model."""

import json

from pydantic import BaseModel, Field

from ..shared.models import CatalogProduct, CustomizationKind


class MenuOption(BaseModel):
    """A priced option (variant or modifier). Prices are display context only."""

    id: str
    name: str
    price: float


class MenuModifierGroup(BaseModel):
    """A modifier group with its selection rules and options."""

    name: str
    required: bool
    multiple: bool
    options: list[MenuOption]


class MenuPizzaCustomization(BaseModel):
    """A pizza flavor or ingredient."""

    id: str
    name: str
    kind: CustomizationKind


class MenuCandidate(BaseModel):
    """One retrieved product with only the fields needed for mapping."""

    id: str
    name: str
    score: float = Field(exclude=True)
    variants: list[MenuOption] = Field(default_factory=list)
    modifier_groups: list[MenuModifierGroup] = Field(default_factory=list)
    pizza_customizations: list[MenuPizzaCustomization] = Field(default_factory=list)

    @classmethod
    def from_product(cls, product: CatalogProduct, score: float) -> "MenuCandidate":
        """Project a catalog product onto the fields the model needs."""
        return cls(
            id=product.id,
            name=product.name,
            score=score,
            variants=[
                MenuOption(id=v.id, name=v.name, price=v.price)
                for v in product.variants
                if v.is_active
            ],
            modifier_groups=[
                MenuModifierGroup(
                    name=g.name,
                    required=g.is_required,
                    multiple=g.allows_multiple,
                    options=[
                        MenuOption(id=m.id, name=m.name, price=m.price)
                        for m in g.active_modifiers
                    ],
                )
                for g in product.modifier_groups
                if g.is_active and g.active_modifiers
            ],
            pizza_customizations=[
                MenuPizzaCustomization(id=c.id, name=c.name, kind=c.kind)
                for c in product.pizza_customizations
                if c.is_active
            ]
            if product.is_pizza
            else [],
        )


class CandidateMenu(BaseModel):
    """Top-k products for a query, best match first."""

    query: str
    candidates: list[MenuCandidate] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether nothing was found."""
        return not self.candidates

    @property
    def product_ids(self) -> list[str]:
        """IDs of the candidates, in rank order."""
        return [c.id for c in self.candidates]

    def to_json(self) -> str:
        """Serialize the candidates for a tool result message."""
        return json.dumps(
            [
                {"id": c.id, "name": c.name}
                | c.model_dump(mode="json", exclude_defaults=True)
                for c in self.candidates
            ],
            ensure_ascii=False,
        )
