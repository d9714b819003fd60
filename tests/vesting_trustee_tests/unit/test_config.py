"""
Unit tests for environment-driven settings and JSON logging setup.
"""

import json
import logging
import os

import pytest

from vesting_trustee.core.config import ConfigurationError, NetworkType, get_settings
from vesting_trustee.core.logging_config import CustomJsonFormatter, setup_logging


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "VESTING_NETWORK",
        "VESTING_LOG_LEVEL",
        "VESTING_LOG_FILE",
        "VESTING_ENVIRONMENT",
        "VESTING_STATE_PATH",
    ):
        monkeypatch.delenv(var, raising=False)


class TestSettings:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        settings = get_settings()

        assert settings.network is NetworkType.TESTNET
        assert settings.log_level == "INFO"
        assert settings.log_file is None
        assert settings.environment == "development"
        assert settings.state_path == os.path.join(str(tmp_path), "vesting_state.json")

    def test_mainnet_defaults_to_production(self, monkeypatch):
        monkeypatch.setenv("VESTING_NETWORK", "MAINNET")

        settings = get_settings()

        assert settings.network is NetworkType.MAINNET
        assert settings.environment == "production"

    def test_explicit_values(self, monkeypatch):
        monkeypatch.setenv("VESTING_LOG_LEVEL", "debug")
        monkeypatch.setenv("VESTING_LOG_FILE", "/tmp/vesting.log")
        monkeypatch.setenv("VESTING_ENVIRONMENT", "staging")
        monkeypatch.setenv("VESTING_STATE_PATH", "/data/state.json")

        settings = get_settings()

        assert settings.log_level == "DEBUG"
        assert settings.log_file == "/tmp/vesting.log"
        assert settings.environment == "staging"
        assert settings.state_path == "/data/state.json"

    def test_unknown_network(self, monkeypatch):
        monkeypatch.setenv("VESTING_NETWORK", "devnet")
        with pytest.raises(ConfigurationError):
            get_settings()

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("VESTING_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            get_settings()


class TestLogging:
    def test_json_records_carry_context(self):
        formatter = CustomJsonFormatter(environment="staging", service_name="vesting_trustee")
        record = logging.LogRecord(
            name="vesting_trustee.core.contracts.vesting_trustee",
            level=logging.INFO,
            pathname=__file__,
            lineno=10,
            msg="Grant created",
            args=(),
            exc_info=None,
        )
        record.event = "trustee.grant"
        record.value = 1000

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Grant created"
        assert payload["event"] == "trustee.grant"
        assert payload["value"] == 1000
        assert payload["environment"] == "staging"
        assert payload["service"] == "vesting_trustee"
        assert payload["level"] == "info"
        assert "timestamp" in payload
        assert payload["source"]["line"] == 10

    def test_setup_logging_writes_json_file(self, tmp_path):
        log_file = tmp_path / "logs" / "trustee.json"
        logger = setup_logging(
            name="vesting_trustee_test_logger",
            log_file=str(log_file),
            level="INFO",
            environment="test",
            enable_console=False,
        )
        try:
            logger.info("hello", extra={"event": "test.hello"})
            for handler in logger.handlers:
                handler.flush()

            line = log_file.read_text().strip().splitlines()[-1]
            assert json.loads(line)["event"] == "test.hello"
        finally:
            for handler in logger.handlers:
                handler.close()
            logger.handlers = []

    def test_setup_logging_replaces_handlers(self):
        name = "vesting_trustee_test_handlers"
        setup_logging(name=name, level="WARNING")
        logger = setup_logging(name=name, level="WARNING")
        try:
            assert len(logger.handlers) == 1
            assert logger.level == logging.WARNING
        finally:
            logger.handlers = []
