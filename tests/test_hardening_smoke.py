# File: tests/test_hardening_smoke.py | Version: 2.0 | Title: Coverage bump for logging and sentry
import logging

from inline_db.core.errors import InlineDbError, NotFound
from inline_db.core.logging import configure_logging
from inline_db.observability import sentry as sentry_module
from inline_db.observability.sentry import init_sentry_if_configured


def test_configure_logging_plain_and_json(monkeypatch):
    # Plain text path
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_JSON", "false")
    configure_logging()
    logging.getLogger(__name__).debug("plain-log")
    # JSON path, with audit fields attached
    monkeypatch.setenv("LOG_JSON", "true")
    configure_logging()
    logging.getLogger(__name__).info("json-log", extra={"database_id": "db-1"})
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("LOG_JSON", "false")
    configure_logging()


def test_sentry_init_disabled_then_enabled(monkeypatch):
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    assert init_sentry_if_configured() is False

    calls = {}
    monkeypatch.setattr(sentry_module.sentry_sdk, "init", lambda **kwargs: calls.update(kwargs))
    monkeypatch.setenv("SENTRY_DSN", "https://dummy-public@o0.ingest.sentry.io/0")
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "0.05")

    assert init_sentry_if_configured() is True
    assert calls["traces_sample_rate"] == 0.05
    assert calls["before_send"] is sentry_module._drop_domain_errors


def test_expected_domain_errors_are_not_reported():
    event = {"message": "x"}
    not_found = NotFound("Database not found")
    assert sentry_module._drop_domain_errors(event, {"exc_info": (NotFound, not_found, None)}) is None

    class Broken(InlineDbError):
        status_code = 500

    broken = Broken("boom")
    assert sentry_module._drop_domain_errors(event, {"exc_info": (Broken, broken, None)}) is event
    assert sentry_module._drop_domain_errors(event, None) is event
