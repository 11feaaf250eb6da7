"""Tests for structured logging configuration."""

import asyncio
import json
import logging

import pytest
import structlog

from guestlist.api.app import exception_handler
from guestlist.config import Settings
from guestlist.exceptions import DuplicateEmailError
from guestlist.logging_config import (
    bind_context,
    build_processors,
    clear_context,
    configure_logging,
    get_logger,
    mask_email,
)


@pytest.fixture(autouse=True)
def _reset_structlog():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    clear_context()
    structlog.reset_defaults()
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def _json_events(capsys, caplog) -> list[dict]:
    # Structlog output can reach stdout directly or go through the
    # stdlib handlers pytest installs, depending on handler setup order.
    lines = capsys.readouterr().out.splitlines()
    lines += [record.getMessage() for record in caplog.records]
    events = []
    for line in lines:
        line = line.strip()
        if line.startswith("{"):
            events.append(json.loads(line))
    return events


class TestMaskEmail:
    def test_masks_local_part(self) -> None:
        assert mask_email("jane.doe@acme.io") == "j***@acme.io"

    def test_leaves_non_addresses_alone(self) -> None:
        assert mask_email("no-at-sign") == "no-at-sign"


class TestProcessors:
    def test_json_chain_ends_with_json_renderer(self) -> None:
        processors = build_processors("json")

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_chain_ends_with_console_renderer(self) -> None:
        processors = build_processors("console")

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestConfiguredOutput:
    def test_json_output_carries_context_and_masks_emails(
        self, capsys, caplog
    ) -> None:
        configure_logging(
            Settings(environment="testing", log_format="json", log_level="DEBUG")
        )
        logger = get_logger("guestlist.tests")

        with caplog.at_level(logging.DEBUG):
            bind_context(request_id="abc12345")
            logger.warning(
                "domain_exception",
                error_code="DUPLICATE_EMAIL",
                context={"email": "ada@engines.io"},
            )

        events = [e for e in _json_events(capsys, caplog) if e["event"] == "domain_exception"]
        assert events
        event = events[0]
        assert event["request_id"] == "abc12345"
        assert event["level"] == "warning"
        assert event["context"] == {"email": "a***@engines.io"}
        assert event["app"] == "Guestlist"

    def test_clear_context_drops_bound_values(self, capsys, caplog) -> None:
        configure_logging(
            Settings(environment="testing", log_format="json", log_level="DEBUG")
        )
        logger = get_logger("guestlist.tests")

        with caplog.at_level(logging.DEBUG):
            bind_context(caller_id="user-1")
            clear_context()
            logger.info("after_clear")

        events = [e for e in _json_events(capsys, caplog) if e["event"] == "after_clear"]
        assert events
        assert "caller_id" not in events[0]

    def test_domain_exception_keeps_email_out_of_logs(self, capsys, caplog) -> None:
        configure_logging(
            Settings(environment="testing", log_format="json", log_level="DEBUG")
        )

        with caplog.at_level(logging.DEBUG):
            response = asyncio.run(
                exception_handler(None, DuplicateEmailError("ada@engines.io"))
            )

        out = capsys.readouterr().out
        logged = out + "\n".join(record.getMessage() for record in caplog.records)
        assert response.status_code == 409
        assert "DUPLICATE_EMAIL" in logged
        assert "ada@engines.io" not in logged
        assert "a***@engines.io" in logged
