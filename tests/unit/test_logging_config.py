"""
LoanScope - Unit Tests for Logging Configuration
"""

import pytest
from loguru import logger

from config.logging_config import (
    clear_run_context,
    log_execution_time,
    set_run_context,
    setup_logging,
)


@pytest.fixture
def captured():
    setup_logging(log_level="DEBUG", reset_existing=True)
    messages = []
    sink_id = logger.add(messages.append, format="{extra[run_id]}|{extra[agent]}|{message}", level="DEBUG")
    yield messages
    logger.remove(sink_id)
    clear_run_context()


class TestRunContext:
    """Records carry the active run id"""

    def test_run_id_attached(self, captured):
        set_run_context("run-123")
        logger.bind(agent="KNNImputer").info("filled")

        assert captured[-1].startswith("run-123|KNNImputer|filled")

    def test_defaults_when_unset(self, captured):
        clear_run_context()
        logger.info("plain")

        assert captured[-1].startswith("-|-|plain")


class TestLogExecutionTime:
    """Tests for log_execution_time"""

    def test_returns_value(self, captured):
        @log_execution_time
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert any("Completed add" in m for m in captured)

    def test_reraises(self, captured):
        @log_execution_time
        def fail():
            raise ValueError("nope")

        with pytest.raises(ValueError):
            fail()
        assert any("Failed fail" in m for m in captured)
