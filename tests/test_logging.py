"""Tests for assigner.logging (root setup, per-logger levels, access log switch)."""

import logging
from collections.abc import Iterator
from unittest.mock import patch

import pytest

from assigner.config import LoggingConfig
from assigner.logging import ACCESS_LOGGER, DEFAULT_FORMAT, LOG, _parse_level, setup_logging

_TOUCHED = (ACCESS_LOGGER, "assigner.store", "assigner.services.engine")


@pytest.fixture(autouse=True)
def reset_levels() -> Iterator[None]:
    """Named logger levels are process-global; put them back after each test."""
    yield
    for name in _TOUCHED:
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestParseLevel:
    def test_case_and_whitespace_normalized(self) -> None:
        assert _parse_level(" debug ") == logging.DEBUG
        assert _parse_level("Error") == logging.ERROR

    def test_unknown_is_none(self) -> None:
        """Unsupported names (including CRITICAL) are rejected."""
        assert _parse_level("TRACE") is None
        assert _parse_level("CRITICAL") is None
        assert _parse_level("") is None


class TestRootSetup:
    def test_level_and_format_from_config(self) -> None:
        custom = "%(levelname)s || %(name)s || %(message)s"
        setup_logging(LoggingConfig(level="WARNING", format=custom))
        assert logging.root.level == logging.WARNING
        assert len(logging.root.handlers) == 1
        assert logging.root.handlers[0].formatter._fmt == custom

    def test_empty_format_uses_default(self) -> None:
        setup_logging(LoggingConfig(level="INFO", format=""))
        assert logging.root.handlers[0].formatter._fmt == DEFAULT_FORMAT

    def test_unknown_level_falls_back_to_info_with_warning(self) -> None:
        with patch.object(LOG, "warning") as warn:
            setup_logging(LoggingConfig(level="TRACE"))
        assert logging.root.level == logging.INFO
        warn.assert_called_once()
        assert "TRACE" in warn.call_args[0]


class TestPerLoggerLevels:
    def test_namespace_override(self) -> None:
        """A namespace can run at DEBUG while the root stays at INFO."""
        setup_logging(LoggingConfig(level="INFO", loggers={"assigner.store": "DEBUG"}))
        assert logging.getLogger("assigner.store.sqlite").isEnabledFor(logging.DEBUG)
        assert not logging.getLogger("assigner.services.engine").isEnabledFor(logging.DEBUG)

    def test_namespace_can_be_quieter_than_root(self) -> None:
        setup_logging(LoggingConfig(level="DEBUG", loggers={"assigner.services.engine": "ERROR"}))
        assert not logging.getLogger("assigner.services.engine").isEnabledFor(logging.INFO)
        assert logging.getLogger("assigner.store").isEnabledFor(logging.DEBUG)

    def test_bad_override_is_ignored(self) -> None:
        with patch.object(LOG, "warning") as warn:
            setup_logging(LoggingConfig(level="INFO", loggers={"assigner.store": "LOUD"}))
        assert logging.getLogger("assigner.store").level == logging.NOTSET
        assert "assigner.store" in warn.call_args[0]


class TestAccessLog:
    def test_enabled_by_default(self) -> None:
        setup_logging(LoggingConfig(level="INFO"))
        assert logging.getLogger(ACCESS_LOGGER).isEnabledFor(logging.INFO)

    def test_disabled_keeps_server_lifecycle_logs(self) -> None:
        setup_logging(LoggingConfig(level="INFO", access_log=False))
        assert not logging.getLogger(ACCESS_LOGGER).isEnabledFor(logging.INFO)
        assert logging.getLogger(ACCESS_LOGGER).isEnabledFor(logging.WARNING)
        assert logging.getLogger("assigner.api.server").isEnabledFor(logging.INFO)

    def test_reenabled_by_later_setup(self) -> None:
        setup_logging(LoggingConfig(level="INFO", access_log=False))
        setup_logging(LoggingConfig(level="INFO", access_log=True))
        assert logging.getLogger(ACCESS_LOGGER).isEnabledFor(logging.INFO)
