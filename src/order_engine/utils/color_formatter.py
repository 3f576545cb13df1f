"""Colored console logging for the command-line tools."""

import logging
from datetime import datetime

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "google_genai")


class ColoredFormatter(logging.Formatter):
    """Formats records as `LEVEL [logger] (HH:MM:SS) message` with ANSI colors."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord):
        """Format a log record."""
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return (
            f"{color}{record.levelname}{self.RESET} "
            f"[\033[34m{record.name}{self.RESET}] "
            f"\033[90m({timestamp}){self.RESET} {message}"
        )


def setup_logging(level: str = "INFO") -> None:
    """Install the colored console handler on the root logger and quiet SDK loggers."""
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ColoredFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
