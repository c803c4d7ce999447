import importlib
import os
import sys

import pytest

import tokenvest.core


@pytest.fixture(autouse=True)
def restore_config_module():
    original = sys.modules.get("tokenvest.core.config")
    yield
    if original is not None:
        sys.modules["tokenvest.core.config"] = original
        tokenvest.core.config = original


def _reload_config(monkeypatch, env: dict[str, str]):
    for key in list(os.environ.keys()):
        if key.startswith("TOKENVEST_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    if "tokenvest.core.config" in sys.modules:
        del sys.modules["tokenvest.core.config"]
    config = importlib.import_module("tokenvest.core.config")
    return config


def test_mainnet_requires_admins(monkeypatch):
    with pytest.raises(Exception) as excinfo:
        _reload_config(monkeypatch, {"TOKENVEST_NETWORK": "mainnet"})
    assert type(excinfo.value).__name__ == "ConfigurationError"


def test_testnet_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    config = _reload_config(monkeypatch, {})
    assert config.NETWORK == "testnet"
    assert config.ADMIN_ADDRESSES == ["admin"]
    assert config.LOG_LEVEL == "INFO"
    assert config.LOG_FILE is None
    assert config.POOL_ADDRESS == "vesting_pool"
    assert config.TOKEN_ADDRESS == "VEST"
    assert config.STATE_FILE == os.path.join(os.getcwd(), "tokenvest_state.json")


def test_environment_overrides(monkeypatch):
    config = _reload_config(
        monkeypatch,
        {
            "TOKENVEST_NETWORK": "MAINNET",
            "TOKENVEST_ADMIN_ADDRESSES": "treasury, ops ,",
            "TOKENVEST_LOG_LEVEL": "debug",
            "TOKENVEST_TOKEN_ADDRESS": "ABC",
        },
    )
    assert config.NETWORK == "mainnet"
    assert config.ADMIN_ADDRESSES == ["treasury", "ops"]
    assert config.LOG_LEVEL == "DEBUG"
    assert config.TOKEN_ADDRESS == "ABC"


@pytest.mark.parametrize(
    "env",
    [
        {"TOKENVEST_NETWORK": "devnet"},
        {"TOKENVEST_LOG_LEVEL": "chatty"},
    ],
)
def test_invalid_values_rejected(monkeypatch, env):
    with pytest.raises(Exception) as excinfo:
        _reload_config(monkeypatch, env)
    assert type(excinfo.value).__name__ == "ConfigurationError"
