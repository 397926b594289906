"""
Tests for structured JSON logging configuration and output.

Verifies that logging produces valid JSON with expected fields, and that the
conversation loop stamps its records with the session id.
"""

import json
import logging
from io import StringIO

import pytest

from fakes import FakeChatClient, FakePlayer, FakeView
from logging_config import (
    ContextualJsonFormatter,
    StructuredLoggerAdapter,
    setup_logging,
)


def capture(name, level=logging.DEBUG, fmt="%(message)s", **formatter_kwargs):
    """Attach a JSON handler writing to a StringIO and return both."""
    logger = logging.getLogger(name)
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ContextualJsonFormatter(fmt, **formatter_kwargs))
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False
    return logger, stream


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_json_format(self, restore_root_logging):
        setup_logging(use_json=True, log_level="INFO")

        root = restore_root_logging
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ContextualJsonFormatter)
        assert root.level == logging.INFO

    def test_readable_format(self, restore_root_logging):
        setup_logging(use_json=False, log_level="DEBUG")

        root = restore_root_logging
        assert not isinstance(root.handlers[0].formatter, ContextualJsonFormatter)
        assert root.level == logging.DEBUG

    def test_environment_selects_level(self, restore_root_logging, monkeypatch):
        monkeypatch.setenv("ENV", "development")
        monkeypatch.setenv("LOG_FORMAT_JSON", "false")

        setup_logging()

        assert restore_root_logging.level == logging.DEBUG


class TestContextualJsonFormatter:
    def test_adds_standard_fields(self):
        logger, stream = capture("test_fields", fmt="%(timestamp)s %(level)s %(logger)s %(message)s")

        logger.info("Chat request sent")
        log_data = json.loads(stream.getvalue())

        assert log_data["message"] == "Chat request sent"
        assert log_data["timestamp"]
        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "test_fields"

    def test_rename_fields(self):
        logger, stream = capture(
            "test_rename",
            fmt="%(timestamp)s %(level)s %(message)s",
            rename_fields={"timestamp": "@timestamp", "level": "severity"},
        )

        logger.warning("Reply was not valid JSON")
        log_data = json.loads(stream.getvalue())

        assert "@timestamp" in log_data
        assert log_data["severity"] == "WARNING"
        assert "level" not in log_data


class TestStructuredLoggerAdapter:
    def test_context_and_event_fields(self):
        logger, stream = capture("test_adapter")
        adapter = StructuredLoggerAdapter(logger, {"session_id": "abc123", "model": "llama3"})

        adapter.warning_event("parse_retry", "Reply was not in the expected format", attempt=2)
        log_data = json.loads(stream.getvalue())

        assert log_data["event_type"] == "parse_retry"
        assert log_data["message"] == "Reply was not in the expected format"
        assert log_data["attempt"] == 2
        assert log_data["session_id"] == "abc123"
        assert log_data["model"] == "llama3"

    def test_merges_call_extra(self):
        logger, stream = capture("test_merge")
        adapter = StructuredLoggerAdapter(logger, {"session_id": "xyz789"})

        adapter.info("Playback finished", extra={"outcome": "skipped"})
        log_data = json.loads(stream.getvalue())

        assert log_data["session_id"] == "xyz789"
        assert log_data["outcome"] == "skipped"

    def test_levels_respected(self):
        logger, stream = capture("test_levels", level=logging.WARNING, fmt="%(level)s %(message)s")
        adapter = StructuredLoggerAdapter(logger, {})

        adapter.debug_event("chat_response", "Should not appear")
        adapter.info_event("turn_completed", "Should not appear")
        adapter.warning_event("empty_spoken", "Received empty spoken text")
        adapter.error_event("chat_transport_failed", "Chat request failed")

        lines = stream.getvalue().strip().split("\n")
        assert len(lines) == 2
        assert json.loads(lines[0])["level"] == "WARNING"
        assert json.loads(lines[1])["event_type"] == "chat_transport_failed"


class TestConversationLogging:
    async def test_failed_turn_logs_with_session_id(self, caplog):
        from audio.playback import SpeechPlayback
        from config import SessionConfig
        from sessions.conversation import ConversationStateMachine

        view = FakeView()
        playback = SpeechPlayback(view, FakePlayer(), tick_seconds=0.001)
        machine = ConversationStateMachine(
            SessionConfig(), FakeChatClient(["garbage", "garbage", "garbage"]), playback, view
        )

        with caplog.at_level(logging.DEBUG, logger="sessions.conversation"):
            await machine.advance_conversation("Bonjour")

        events = [(record.levelname, getattr(record, "event_type", None)) for record in caplog.records]
        assert events.count(("WARNING", "parse_retry")) == 2
        assert ("ERROR", "parse_failed") in events
        assert all(record.session_id == machine.session_id for record in caplog.records if hasattr(record, "event_type"))
