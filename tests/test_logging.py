from __future__ import annotations

import logging
from pathlib import Path

from tour_booking.logging_config import configure_logging


def test_configure_logging_adds_stream_handler() -> None:
    # Ensure configuring logging doesn't raise and attaches a StreamHandler
    configure_logging(None)
    root = logging.getLogger()
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_configure_logging_writes_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "service.log"
    configure_logging(log_path, "DEBUG")
    logging.getLogger("tour_booking.test").info("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in log_path.read_text(encoding="utf-8")
    configure_logging(None)
