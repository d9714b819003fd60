"""
Vesting Trustee Configuration

Supports testnet and mainnet with separate defaults. All values are read
from environment variables; nothing is hard-coded per deployment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _get_network(env_var: str = "VESTING_NETWORK") -> NetworkType:
    raw = os.getenv(env_var, NetworkType.TESTNET.value).strip().lower()
    try:
        return NetworkType(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be one of: {', '.join(n.value for n in NetworkType)} (got {raw!r})"
        ) from exc


def _get_log_level(env_var: str = "VESTING_LOG_LEVEL") -> str:
    level = os.getenv(env_var, "INFO").strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(f"{env_var} must be one of: {', '.join(_LOG_LEVELS)} (got {level!r})")
    return level


@dataclass(frozen=True)
class Settings:
    """Snapshot of the environment-driven settings."""

    network: NetworkType
    log_level: str
    log_file: str | None
    environment: str
    state_path: str


def get_settings() -> Settings:
    """Re-read settings from the current environment."""
    network = _get_network()
    log_file = os.getenv("VESTING_LOG_FILE", "").strip() or None
    environment = os.getenv("VESTING_ENVIRONMENT", "").strip()
    if not environment:
        environment = "production" if network is NetworkType.MAINNET else "development"
    state_path = os.getenv(
        "VESTING_STATE_PATH",
        os.path.join(os.getcwd(), "vesting_state.json"),
    )
    settings = Settings(
        network=network,
        log_level=_get_log_level(),
        log_file=log_file,
        environment=environment,
        state_path=state_path,
    )
    logger.debug(
        "Settings loaded",
        extra={"event": "config.loaded", "network": network.value, "environment": environment},
    )
    return settings
