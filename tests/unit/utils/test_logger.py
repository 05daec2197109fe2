"""Tests for alertcapture.utils.logger module."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from alertcapture.utils.logger import (
    HealthEndpointFilter,
    get_logger,
    get_module_logger,
    setup_logging,
)


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.mark.parametrize(
        "level,expected_numeric",
        [
            ("DEBUG", logging.DEBUG),
            ("info", logging.INFO),
            ("WaRnInG", logging.WARNING),
            ("ERROR", logging.ERROR),
        ],
    )
    def test_setup_logging_accepts_any_case(self, level: str, expected_numeric: int) -> None:
        with patch("logging.basicConfig") as mock_basic_config:
            setup_logging(level)
            mock_basic_config.assert_called_once()
            assert mock_basic_config.call_args[1]["level"] == expected_numeric
            assert mock_basic_config.call_args[1]["force"] is True

    def test_setup_logging_rejects_invalid_level(self) -> None:
        with patch("logging.basicConfig") as mock_basic_config:
            with pytest.raises(ValueError, match="Invalid log level: VERBOSE"):
                setup_logging("VERBOSE")
            mock_basic_config.assert_not_called()

    def test_setup_logging_quiets_httpx(self) -> None:
        with patch("logging.basicConfig"):
            setup_logging("DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("alertcapture").level == logging.DEBUG

    def test_setup_logging_installs_health_filter(self) -> None:
        with patch("logging.basicConfig"):
            setup_logging("INFO")

        filters = logging.getLogger("uvicorn.access").filters
        assert any(isinstance(f, HealthEndpointFilter) for f in filters)


@pytest.mark.unit
class TestLoggerNames:
    """Tests for get_logger and get_module_logger."""

    def test_get_logger_adds_prefix(self) -> None:
        assert get_logger("services.test").name == "alertcapture.services.test"

    def test_get_logger_keeps_existing_prefix(self) -> None:
        assert get_logger("alertcapture.main").name == "alertcapture.main"

    def test_get_module_logger_strips_package(self) -> None:
        logger = get_module_logger("alertcapture.services.capture_pool_manager")

        assert logger.name == "alertcapture.services.capture_pool_manager"


@pytest.mark.unit
class TestHealthEndpointFilter:
    """Tests for suppressing successful health probe access logs."""

    @pytest.fixture
    def health_filter(self) -> HealthEndpointFilter:
        return HealthEndpointFilter()

    def _record(self, args) -> MagicMock:
        record = MagicMock(spec=logging.LogRecord)
        record.args = args
        return record

    def test_suppresses_successful_health_check(self, health_filter) -> None:
        record = self._record(("127.0.0.1:5000", "GET", "/health", "1.1", 200))

        assert health_filter.filter(record) is False

    @pytest.mark.parametrize("args", [
        ("127.0.0.1:5000", "GET", "/health", "1.1", 503),
        ("127.0.0.1:5000", "POST", "/api/v1/alerts", "1.1", 200),
        ("127.0.0.1:5000", "GET", "/health"),
        (),
    ])
    def test_lets_other_records_through(self, health_filter, args) -> None:
        assert health_filter.filter(self._record(args)) is True
