"""Validation and pricing of proposed order items."""

from .pizza import (
    PizzaLayout,
    PizzaTopping,
    SplitPizza,
    WholePizza,
    parse_pizza_layout,
    pizza_surcharge,
)
from .resolver import OrderItemResolver, resolve_order_items

__all__ = [
    "OrderItemResolver",
    "PizzaLayout",
    "PizzaTopping",
    "SplitPizza",
    "WholePizza",
    "parse_pizza_layout",
    "pizza_surcharge",
    "resolve_order_items",
]
