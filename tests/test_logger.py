"""Tests for EngineLogger."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import BaseModel

from order_engine.logger import EngineLogger, Log


@pytest.fixture
def sink():
    """A mock log sink."""
    sink = MagicMock()
    sink.write = AsyncMock()
    return sink


class Payload(BaseModel):
    """Structured log data."""

    value: int


class TestEngineLogger:
    """Tests for EngineLogger."""

    @pytest.mark.asyncio
    async def test_levels_reach_sink(self, sink):
        """Every level writes one log to the sink."""
        logger = EngineLogger("test-logger", sink)
        logger.debug("debug message")
        logger.info("info message")
        logger.warning("warning message")
        logger.error("error message")
        await logger.flush()

        levels = [call.args[0].level for call in sink.write.call_args_list]
        assert levels == ["debug", "info", "warning", "error"]

    @pytest.mark.asyncio
    async def test_structured_data(self, sink):
        """Data and metadata are carried on the log."""
        logger = EngineLogger("test-logger", sink)
        logger.debug(data=Payload(value=3), metadata={"turn": 1})
        await logger.flush()

        log: Log = sink.write.call_args.args[0]
        assert log.name == "test-logger"
        assert log.data == Payload(value=3)
        assert log.metadata == {"turn": 1}

    def test_requires_message_or_data(self):
        """An empty log call is an error."""
        with pytest.raises(ValueError):
            EngineLogger("test-logger").info()

    def test_without_sink_only_python_logging(self, caplog):
        """Without a sink nothing is scheduled."""
        logger = EngineLogger("test-logger")
        with caplog.at_level(logging.INFO, logger="test-logger"):
            assert logger.info("hello") is None
        assert "hello" in caplog.text

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_propagate(self, caplog):
        """A failing sink is reported but never raises."""
        sink = MagicMock()
        sink.write = AsyncMock(side_effect=RuntimeError("disk full"))
        logger = EngineLogger("test-logger", sink)

        logger.info("message")
        await logger.flush()

        assert "Failed to write log to sink" in caplog.text

    @pytest.mark.asyncio
    async def test_flush_with_nothing_pending(self, sink):
        """Flush with nothing pending returns an empty list."""
        logger = EngineLogger("test-logger", sink)
        assert await logger.flush() == []

    @pytest.mark.asyncio
    async def test_exception_includes_traceback(self, sink):
        """exception() appends the active traceback."""
        logger = EngineLogger("test-logger", sink)
        try:
            raise KeyError("boom")
        except KeyError:
            logger.exception("failed")
        await logger.flush()

        log: Log = sink.write.call_args.args[0]
        assert log.level == "error"
        assert "KeyError" in log.message
