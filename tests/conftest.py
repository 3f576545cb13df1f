"""Shared fixtures: a small pizzeria catalog and scripted upstream clients."""

import asyncio
from collections.abc import Callable, Sequence

import pytest

from order_engine.catalog.index import CatalogIndex, CatalogSnapshot
from order_engine.embedding.base import BaseEmbeddingConfig, EmbeddingClient
from order_engine.llm.base import ProviderClient
from order_engine.llm.config import BaseLLMConfig
from order_engine.llm.types import ModelTurn, ToolCall, ToolDefinition, Transcript, Usage
from order_engine.shared.models import (
    CatalogProduct,
    CustomizationKind,
    Modifier,
    ModifierGroup,
    PizzaConfiguration,
    PizzaCustomization,
    Variant,
)

# Keyword -> query vector used by FakeEmbeddingClient
QUERY_VECTORS = {
    "pizza": (1.0, 0.0, 0.0, 0.0),
    "hamburguesa": (0.0, 1.0, 0.0, 0.0),
    "alitas": (0.0, 0.0, 1.0, 0.0),
    "refresco": (0.0, 0.0, 0.0, 1.0),
}


class FakeEmbeddingClient(EmbeddingClient[BaseEmbeddingConfig]):
    """Embeds text by keyword lookup; records every text it was asked to embed."""

    def __init__(self, vectors: dict[str, tuple[float, ...]] | None = None):
        super().__init__(
            BaseEmbeddingConfig(provider="openai", model="fake-embedding", dimensions=4)
        )
        self.vectors = vectors if vectors is not None else QUERY_VECTORS
        self.calls: list[str] = []

    async def _embed(self, text: str, *, model: str) -> list[float]:
        self.calls.append(text)
        lowered = text.lower()
        vector = [0.0, 0.0, 0.0, 0.0]
        for keyword, keyword_vector in self.vectors.items():
            if keyword in lowered:
                vector = [a + b for a, b in zip(vector, keyword_vector, strict=True)]
        return vector


class ScriptedLLMClient(ProviderClient[BaseLLMConfig]):
    """Replays canned model turns, one per call.

    Script entries are `ModelTurn`s, `Exception`s to raise, or callables
    taking the transcript and returning either.
    """

    def __init__(self, script: Sequence, *, timeout_seconds: float = 5.0):
        super().__init__(
            BaseLLMConfig(
                provider="openai", model="scripted-model", timeout_seconds=timeout_seconds
            )
        )
        self.script = list(script)
        self.transcripts: list[Transcript] = []
        self.tool_names: list[list[str]] = []
        self.system_instructions: list[str | None] = []

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
        self.transcripts.append(transcript)
        self.tool_names.append([t.name for t in tools])
        self.system_instructions.append(system_instruction)
        if not self.script:
            raise AssertionError("ScriptedLLMClient ran out of turns")

        entry = self.script.pop(0)
        if callable(entry) and not isinstance(entry, ModelTurn):
            entry = entry(transcript)
        if isinstance(entry, BaseException):
            raise entry
        await asyncio.sleep(0)
        return entry, Usage(token_count=10, provider="openai", model=model)

    @property
    def call_count(self) -> int:
        return len(self.transcripts)


def tool_turn(name: str, arguments: dict | None = None, call_id: str | None = None) -> ModelTurn:
    """Build a model turn holding one tool call."""
    if call_id is None:
        return ModelTurn(tool_call=ToolCall(name=name, arguments=arguments or {}))
    return ModelTurn(tool_call=ToolCall(id=call_id, name=name, arguments=arguments or {}))


def build_products() -> list[CatalogProduct]:
    """A pizzeria menu covering variants, modifier groups and pizza toppings."""
    return [
        CatalogProduct(
            id="PZ",
            name="Pizza",
            category="Comida",
            subcategory="Pizzas",
            has_variants=True,
            is_pizza=True,
            variants=(
                Variant(id="PZ-V-1", name="Grande", price=240.0),
                Variant(id="PZ-V-2", name="Mediana", price=190.0),
                Variant(id="PZ-V-3", name="Chica", price=140.0, is_active=False),
            ),
            pizza_customizations=(
                PizzaCustomization(
                    id="PZ-I-1", name="Hawaiana", kind=CustomizationKind.FLAVOR, topping_value=4
                ),
                PizzaCustomization(
                    id="PZ-I-2", name="Mexicana", kind=CustomizationKind.FLAVOR, topping_value=4
                ),
                PizzaCustomization(
                    id="PZ-I-3", name="Pepperoni", kind=CustomizationKind.INGREDIENT, topping_value=1
                ),
                PizzaCustomization(
                    id="PZ-I-4", name="Champiñón", kind=CustomizationKind.INGREDIENT, topping_value=1
                ),
                PizzaCustomization(
                    id="PZ-I-5", name="Jalapeño", kind=CustomizationKind.INGREDIENT, topping_value=1
                ),
                PizzaCustomization(
                    id="PZ-I-6",
                    name="Anchoas",
                    kind=CustomizationKind.INGREDIENT,
                    topping_value=1,
                    is_active=False,
                ),
            ),
            pizza_configuration=PizzaConfiguration(included_toppings=4, extra_topping_cost=20.0),
            embedding=(1.0, 0.0, 0.0, 0.0),
        ),
        CatalogProduct(
            id="HB",
            name="Hamburguesa",
            category="Comida",
            subcategory="Hamburguesas",
            price=120.0,
            modifier_groups=(
                ModifierGroup(
                    id="HB-G-1",
                    name="Término",
                    is_required=True,
                    modifiers=(
                        Modifier(id="HB-M-1", name="Término medio"),
                        Modifier(id="HB-M-2", name="Bien cocida"),
                    ),
                ),
                ModifierGroup(
                    id="HB-G-2",
                    name="Extras",
                    allows_multiple=True,
                    modifiers=(
                        Modifier(id="HB-M-3", name="Extra queso", price=15.0),
                        Modifier(id="HB-M-4", name="Tocino", price=20.0),
                        Modifier(id="HB-M-5", name="Aguacate", price=25.0, is_active=False),
                    ),
                ),
            ),
            embedding=(0.0, 1.0, 0.0, 0.0),
        ),
        CatalogProduct(
            id="AL",
            name="Alitas",
            category="Comida",
            subcategory="Entradas",
            has_variants=True,
            variants=(
                Variant(id="AL-V-1", name="6 piezas", price=110.0),
                Variant(id="AL-V-2", name="12 piezas", price=200.0),
            ),
            modifier_groups=(
                ModifierGroup(
                    id="AL-G-1",
                    name="Salsa",
                    is_required=True,
                    modifiers=(
                        Modifier(id="AL-M-1", name="BBQ"),
                        Modifier(id="AL-M-2", name="Búfalo"),
                    ),
                ),
            ),
            embedding=(0.0, 0.0, 1.0, 0.0),
        ),
        CatalogProduct(
            id="RF",
            name="Refresco",
            category="Bebidas",
            price=30.0,
            embedding=(0.0, 0.0, 0.0, 1.0),
        ),
        CatalogProduct(
            id="EN",
            name="Ensalada",
            category="Comida",
            price=90.0,
            is_active=False,
            embedding=(0.7, 0.7, 0.0, 0.0),
        ),
    ]


@pytest.fixture
def products() -> list[CatalogProduct]:
    """The sample menu products."""
    return build_products()


@pytest.fixture
def snapshot(products: list[CatalogProduct]) -> CatalogSnapshot:
    """A catalog snapshot with a 150.00 minimum for delivery."""
    return CatalogSnapshot(version=1, products=tuple(products), minimum_delivery_order=150.0)


@pytest.fixture
def catalog_index(snapshot: CatalogSnapshot) -> CatalogIndex:
    """An index serving the sample snapshot."""
    return CatalogIndex.from_snapshot(snapshot)


@pytest.fixture
def embedding_client() -> FakeEmbeddingClient:
    """Keyword-based embedding client."""
    return FakeEmbeddingClient()


@pytest.fixture
def scripted_llm() -> Callable[..., ScriptedLLMClient]:
    """Factory for scripted LLM clients."""
    return ScriptedLLMClient


@pytest.fixture
def make_tool_turn() -> Callable[..., ModelTurn]:
    """Factory for tool-call model turns."""
    return tool_turn
