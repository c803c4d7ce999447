"""
tokenvest Configuration

Supports testnet and mainnet with separate defaults.

All values come from environment variables and are read once at import time.
On mainnet the admin set must be configured explicitly.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _parse_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _get_admin_addresses(env_var: str, network: str) -> list[str]:
    """Get admin addresses from environment, with mainnet enforcement.

    On mainnet, a missing admin list raises ConfigurationError.
    On testnet, it falls back to a single ``admin`` identity with a warning.
    """
    addresses = _parse_list(os.getenv(env_var, ""))
    if addresses:
        return addresses

    if network.lower() == NetworkType.MAINNET.value:
        raise ConfigurationError(
            f"CRITICAL: {env_var} environment variable required for mainnet. "
            "Provide a comma-separated list of admin identities."
        )

    logger.warning(
        "%s not set, using default 'admin' identity for testnet.",
        env_var,
        extra={"event": "config.admin_default", "env_var": env_var},
    )
    return ["admin"]


def _get_log_level(env_var: str) -> str:
    level = os.getenv(env_var, "INFO").strip().upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError(f"{env_var} must be a standard logging level, got {level!r}")
    return level


# Get network type from environment variable
NETWORK = os.getenv("TOKENVEST_NETWORK", NetworkType.TESTNET.value).strip().lower()
if NETWORK not in {n.value for n in NetworkType}:
    raise ConfigurationError(f"TOKENVEST_NETWORK must be 'testnet' or 'mainnet', got {NETWORK!r}")

LOG_LEVEL = _get_log_level("TOKENVEST_LOG_LEVEL")
LOG_FILE = os.getenv("TOKENVEST_LOG_FILE", "").strip() or None
STATE_FILE = os.getenv(
    "TOKENVEST_STATE_FILE",
    os.path.join(os.getcwd(), "tokenvest_state.json"),
)
ADMIN_ADDRESSES = _get_admin_addresses("TOKENVEST_ADMIN_ADDRESSES", NETWORK)
POOL_ADDRESS = os.getenv("TOKENVEST_POOL_ADDRESS", "vesting_pool").strip()
TOKEN_ADDRESS = os.getenv("TOKENVEST_TOKEN_ADDRESS", "VEST").strip()
