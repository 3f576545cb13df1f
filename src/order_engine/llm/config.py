"""Settings for the language-model clients that drive the mapping conversation."""

from typing import Literal

from pydantic import BaseModel

from ..config import EnvField

LLM_PROVIDER = Literal["openai", "gemini", "anthropic"]


class BaseLLMConfig(BaseModel):
    """Provider-neutral settings for one tool-calling client.

    Each mapping turn is a single forced tool call, so the defaults favor
    short, cheap answers: minimal reasoning and a small token budget. The
    timeout bounds one turn, not the whole conversation.
    """

    provider: LLM_PROVIDER = EnvField("LLM_PROVIDER")
    model: str | None = EnvField("LLM_MODEL", default=None)
    reasoning_effort: Literal["minimal", "low", "medium", "high"] | int = EnvField(
        "LLM_REASONING_EFFORT", default="minimal"
    )
    temperature: float | None = EnvField("LLM_TEMPERATURE", default=None)
    max_tokens: int = EnvField("LLM_MAX_TOKENS", default=2000, gt=0)
    max_concurrency: int = EnvField("LLM_MAX_CONCURRENCY", default=64, ge=1)
    timeout_seconds: float = EnvField("LLM_TIMEOUT_SECONDS", default=30.0, gt=0)
