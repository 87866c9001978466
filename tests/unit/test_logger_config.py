from __future__ import annotations

import structlog

from coursegen.core.observability.logger_config import configure_structlog, rename_event_to_message


def test_event_is_exposed_as_message() -> None:
    event = rename_event_to_message(None, "info", {"event": "toc_generated", "topic": "Rust"})

    assert event == {"message": "toc_generated", "topic": "Rust"}


def test_configure_structlog_binds_stdlib_logger() -> None:
    try:
        configure_structlog(level="DEBUG", fmt="json")

        assert structlog.is_configured()
        assert structlog.get_config()["wrapper_class"] is structlog.stdlib.BoundLogger
    finally:
        structlog.reset_defaults()
