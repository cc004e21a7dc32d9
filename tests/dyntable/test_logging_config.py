from __future__ import annotations

import logging

import pytest
from pythonjsonlogger import jsonlogger

from dyntable.logging_config import AUDIT_LOGGER, LOG_FORMAT_ENV, LOG_LEVEL_ENV, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    audit = logging.getLogger(AUDIT_LOGGER)
    saved = (list(root.handlers), root.level, audit.level)
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    audit.setLevel(saved[2])


def _root_formatter():
    return logging.getLogger().handlers[0].formatter


def test_json_is_the_default(monkeypatch):
    monkeypatch.delenv(LOG_FORMAT_ENV, raising=False)
    configure_logging()
    assert isinstance(_root_formatter(), jsonlogger.JsonFormatter)
    assert len(logging.getLogger().handlers) == 1


def test_env_var_selects_plain(monkeypatch):
    monkeypatch.setenv(LOG_FORMAT_ENV, "PLAIN")
    configure_logging()
    assert not isinstance(_root_formatter(), jsonlogger.JsonFormatter)


def test_force_format_wins_over_env(monkeypatch):
    monkeypatch.setenv(LOG_FORMAT_ENV, "plain")
    configure_logging(force_format="json")
    assert isinstance(_root_formatter(), jsonlogger.JsonFormatter)


def test_level_from_env_and_audit_level(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
    configure_logging(audit_level=logging.DEBUG)
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger(AUDIT_LOGGER).level == logging.DEBUG

    monkeypatch.setenv(LOG_LEVEL_ENV, "nonsense")
    configure_logging()
    assert logging.getLogger().level == logging.INFO
