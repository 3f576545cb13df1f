"""Concrete LLM provider clients."""
