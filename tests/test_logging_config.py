"""Tests for logging setup and secret redaction."""

from __future__ import annotations

import logging
import os

import pytest

from guardchain.authentication import InMemoryUserDetailsService, UserDetails
from guardchain.builder import HttpSecurityBuilder
from guardchain.logging_config import (
    APP_LOGGER,
    SecretRedactionFilter,
    secret_redaction_filter,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    """Put loggers touched by setup_logging() back the way they were."""
    saved = {}
    for name in (None, APP_LOGGER):
        lg = logging.getLogger(name)
        saved[name] = (lg.level, list(lg.handlers), lg.propagate)
    yield
    for name, (level, handlers, propagate) in saved.items():
        lg = logging.getLogger(name)
        for handler in lg.handlers:
            if handler not in handlers:
                handler.close()
        lg.handlers = handlers
        lg.setLevel(level)
        lg.propagate = propagate


def _builder() -> HttpSecurityBuilder:
    users = InMemoryUserDetailsService([UserDetails("alice", "secret", ("ROLE_USER",))])
    return HttpSecurityBuilder.from_user_details_service(users)


# ── Redaction ────────────────────────────────────────────────────────────


class TestSecretRedactionFilter:
    def test_redacts_message_and_args(self):
        flt = SecretRedactionFilter()
        flt.register("super-secret-key")
        record = logging.LogRecord(
            "guardchain", logging.INFO, __file__, 1, "key=%s msg super-secret-key", ("super-secret-key",), None
        )
        assert flt.filter(record)
        assert "super-secret-key" not in record.getMessage()
        assert "***REDACTED***" in record.getMessage()

    def test_redacts_mapping_args(self):
        flt = SecretRedactionFilter()
        flt.register("hunter22")
        record = logging.LogRecord("guardchain", logging.INFO, __file__, 1, "pw=%(pw)s", None, None)
        record.args = {"pw": "hunter22"}
        flt.filter(record)
        assert record.getMessage() == "pw=***REDACTED***"

    def test_short_values_ignored(self):
        flt = SecretRedactionFilter()
        flt.register("abc")
        assert flt.redact("abc") == "abc"
        assert not flt.secrets

    def test_overlapping_secrets(self):
        flt = SecretRedactionFilter()
        flt.register("token")
        flt.register("token-extended")
        assert flt.redact("token-extended") == "***REDACTED***"

    def test_noop_without_secrets(self):
        flt = SecretRedactionFilter()
        assert flt.redact("nothing here") == "nothing here"

    def test_repeat_registration_keeps_pattern(self):
        flt = SecretRedactionFilter()
        flt.register("same-secret")
        pattern = flt._pattern
        flt.register("same-secret")
        assert flt._pattern is pattern
        assert flt.secrets == {"same-secret"}


# ── Secrets registered by builds ─────────────────────────────────────────


class TestBuildRegistration:
    def test_generated_keys_not_retained(self):
        before = set(secret_redaction_filter.secrets)
        for _ in range(50):
            builder = _builder().apply_default_configurators()
            builder.remember_me()
            builder.build()
        assert secret_redaction_filter.secrets == before

    def test_supplied_keys_registered(self):
        builder = _builder().apply_default_configurators()
        builder.anonymous().key("anon-key-for-logs")
        builder.remember_me().key("remember-key-for-logs")
        builder.build()
        assert {"anon-key-for-logs", "remember-key-for-logs"} <= secret_redaction_filter.secrets

    def test_supplied_key_registered_once_across_builds(self):
        for _ in range(20):
            builder = _builder()
            builder.remember_me().key("shared-remember-key")
            builder.build()
        assert "shared-remember-key" in secret_redaction_filter.secrets
        assert secret_redaction_filter.redact("k=shared-remember-key") == "k=***REDACTED***"


# ── setup_logging ────────────────────────────────────────────────────────


class TestSetupLogging:
    def test_creates_log_file(self, tmp_path, restore_logging):
        path, level = setup_logging("debug", log_dir=str(tmp_path))
        assert level == "DEBUG"
        assert os.path.dirname(path) == str(tmp_path)
        assert os.path.basename(path).startswith("guardchain_")
        logging.getLogger("guardchain.builder").debug("hello")
        for handler in logging.getLogger(APP_LOGGER).handlers:
            handler.flush()
        with open(path, encoding="utf-8") as fh:
            assert "hello" in fh.read()

    def test_invalid_level_falls_back(self, tmp_path, restore_logging):
        _, level = setup_logging("chatty", log_dir=str(tmp_path))
        assert level == "INFO"
        assert logging.getLogger(APP_LOGGER).level == logging.INFO

    def test_file_handler_redacts_secrets(self, tmp_path, restore_logging):
        secret_redaction_filter.register("file-handler-secret")
        path, _ = setup_logging("info", log_dir=str(tmp_path))
        handlers = logging.getLogger(APP_LOGGER).handlers
        assert all(secret_redaction_filter in h.filters for h in handlers)
        logging.getLogger("guardchain.web").info("key is %s", "file-handler-secret")
        for handler in handlers:
            handler.flush()
        with open(path, encoding="utf-8") as fh:
            content = fh.read()
        assert "file-handler-secret" not in content
        assert "***REDACTED***" in content
