"""Utilities for the command-line tools."""

from .color_formatter import ColoredFormatter, setup_logging

__all__ = ["ColoredFormatter", "setup_logging"]
