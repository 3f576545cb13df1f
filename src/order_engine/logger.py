"""Engine logger for dual Python/sink logging."""

import asyncio
import logging
import traceback
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, SerializeAsAny

LogLevel = Literal["debug", "info", "warning", "error"]


class Log(BaseModel):
    """A structured log entry."""

    model_config = ConfigDict(extra="allow")

    level: LogLevel
    name: str
    message: str | None = None
    data: dict[str, Any] | SerializeAsAny[BaseModel] | None = None
    metadata: dict[str, Any] | None = None


class LogSink(Protocol):
    """Destination for structured logs, e.g. an LLM trace store."""

    async def write(self, log: Log) -> None: ...


class EngineLogger:
    """Logger wrapper that logs to Python logging and an optional async sink."""

    def __init__(self, name: str, sink: LogSink | None = None):
        """Initialize engine logger with name and optional sink."""
        self.name = name
        # Set up basic logging config if none exists
        if not logging.getLogger().handlers:
            logging.basicConfig(
                level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s"
            )
        self.python_logger = logging.getLogger(name)
        self._sink = sink
        self._tasks: list[asyncio.Task] = []

    def _log(
        self,
        level: LogLevel,
        message: str | None = None,
        *,
        data: dict[str, Any] | BaseModel | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> asyncio.Task | None:
        """Log to Python logger and, if configured, the sink."""
        if message is None and data is None:
            raise ValueError("Must provide at least one of message or data.")

        python_level = getattr(logging, level.upper())
        self.python_logger.log(python_level, message)

        if self._sink is None:
            return None

        log = Log(
            level=level, name=self.name, message=message, data=data, metadata=metadata
        )

        # Fire and forget so callers never block on the sink.
        task = asyncio.create_task(self._write_to_sink(log))
        self._tasks.append(task)
        task.add_done_callback(self._remove_task)
        return task

    async def _write_to_sink(self, log: Log):
        assert self._sink is not None
        try:
            await self._sink.write(log)
        except Exception:
            self.python_logger.error(
                f"Failed to write log to sink: {traceback.format_exc()}"
            )

    def debug(
        self,
        message: str | None = None,
        *,
        data: dict[str, Any] | BaseModel | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        """Log a debug message."""
        return self._log("debug", message, data=data, metadata=metadata)

    def info(
        self,
        message: str | None = None,
        *,
        data: dict[str, Any] | BaseModel | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        """Log an info message."""
        return self._log("info", message, data=data, metadata=metadata)

    def warning(
        self,
        message: str | None = None,
        *,
        data: dict[str, Any] | BaseModel | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        """Log a warning message."""
        return self._log("warning", message, data=data, metadata=metadata)

    def error(
        self,
        message: str | None = None,
        *,
        data: dict[str, Any] | BaseModel | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        """Log an error message."""
        return self._log("error", message, data=data, metadata=metadata)

    def exception(
        self,
        message: str | None = None,
        *,
        data: dict[str, Any] | BaseModel | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        """Log an error message with the current traceback."""
        message = ((message or "") + "\n" + traceback.format_exc(2)).strip()
        return self.error(message, data=data, metadata=metadata)

    def _remove_task(self, task: asyncio.Task):
        try:
            self._tasks.remove(task)
        except ValueError:
            # Expected when flush already cleared the list
            self.python_logger.debug("Failed to remove task: task is not in list.")

    async def flush(self):
        """Wait for any pending sink writes to complete."""
        tasks = list(self._tasks)
        self._tasks.clear()
        return await asyncio.gather(*tasks, return_exceptions=True)
