"""Concrete embedding provider clients."""
