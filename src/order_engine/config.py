"""Environment-backed settings shared by every configurable component.

Settings classes are plain pydantic models whose field defaults are read from
environment variables when the model is built, so explicit keyword arguments
always win and a `.env` file loaded before construction is honored.
"""

import logging
import os
from typing import Any, TypeVar

from pydantic import Field

logger = logging.getLogger(__name__)

TField = TypeVar("TField")


def read_env(*env_vars: str) -> str | None:
    """Return the first non-empty value among `env_vars`, or None."""
    for env_var in env_vars:
        value = os.getenv(env_var)
        if value:
            return value
    return None


def EnvField(*env_vars: str, default: TField | None = None, **kwargs: Any) -> TField:  # noqa: UP047
    """Create a Field whose default comes from the first set environment variable.

    Empty values count as unset. Extra keyword arguments (`ge`, `exclude`, ...)
    are passed to `pydantic.Field`, and the environment value is validated
    like any explicit value.
    """

    def get_env_value():
        value = read_env(*env_vars)
        if value is None:
            logger.debug(f"None of {env_vars} is set, using default: {default}")
            return default
        return value

    return Field(default_factory=get_env_value, validate_default=True, **kwargs)  # pyright: ignore[reportReturnType] # FieldInfo is returned; typed as TField for callers
