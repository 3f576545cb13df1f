"""Natural-language order resolution for food-ordering assistants."""

from .engine import EngineConfig, OrderResolutionEngine, ResolutionOutcome

__all__ = ["EngineConfig", "OrderResolutionEngine", "ResolutionOutcome"]
