from __future__ import annotations

import logging
import logging.handlers

import pytest
import structlog
from structlog.testing import capture_logs

from emissions_pipeline.monitoring.logger_config import EmissionsLogger, OperationLogger


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_setup_logging_adds_stream_and_file_handlers(tmp_path, restore_logging) -> None:
    log_file = tmp_path / "logs" / "e.log"
    EmissionsLogger.setup_logging(log_level="DEBUG", log_format="console", log_file=str(log_file))

    root = logging.getLogger()
    assert any(type(h) is logging.StreamHandler for h in root.handlers)
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
    assert root.level == logging.DEBUG
    assert "Logging initialized" in log_file.read_text(encoding="utf-8")


def test_operation_logger_does_not_swallow_errors() -> None:
    with pytest.raises(RuntimeError):
        with OperationLogger("boom", correlation_id="abc", year="2010"):
            raise RuntimeError("fail")


def test_correlation_id_is_bound_to_operation_events() -> None:
    with capture_logs() as logs:
        with OperationLogger("load", correlation_id="abc", year="2010") as log:
            log.warning("halfway")

    assert [e["event"] for e in logs] == ["Operation started: load", "halfway", "Operation completed: load"]
    assert all(e["correlation_id"] == "abc" for e in logs)
