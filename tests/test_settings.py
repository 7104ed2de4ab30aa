"""Tests for settings configuration loading."""

from __future__ import annotations

import os
from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from gmx_prices.constants import AVALANCHE, Network
from gmx_prices.settings import LEGACY_RPC_ENV_VARS, PricesSettings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("GMX_PRICES_"):
            monkeypatch.delenv(name)
    for name in LEGACY_RPC_ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = PricesSettings()

    assert settings.networks == [Network.ARBITRUM, Network.AVALANCHE]
    assert settings.output_dir == Path("dist")
    assert settings.pool_policy.batch_size == 5
    assert settings.pool_policy.batch_delay == 0.2
    assert settings.pool_policy.max_tries == 3
    assert settings.pool_policy.backoff_base == 1.0
    assert settings.vault_page_size == 100
    assert settings.index_whitelist is None


def test_toml_config_loaded_from_env_path(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [gmx_prices]
            networks = ["avalanche"]
            pool_batch_size = 2
            batch_delay = 0.5
            index_token_whitelist = ["eth", "BTC"]

            [gmx_prices.rpc_overrides]
            avalanche = "https://avax.example/rpc"
            """
        ).strip()
    )
    monkeypatch.setenv("GMX_PRICES_CONFIG", str(config_path))

    settings = PricesSettings()

    assert settings.networks == [Network.AVALANCHE]
    assert settings.pool_policy.batch_size == 2
    assert settings.vault_policy.batch_delay == 0.5
    assert settings.index_whitelist == frozenset({"ETH", "BTC"})
    (config,) = settings.network_configs
    assert config.rpc_url == "https://avax.example/rpc"
    assert config.contracts == AVALANCHE.contracts


def test_local_toml_picked_up(tmp_path):
    (tmp_path / "gmx-prices.toml").write_text("vault_batch_size = 9\n")
    assert PricesSettings().vault_policy.batch_size == 9


def test_precedence_cli_over_env_over_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text("max_tries = 7\nretry_backoff = 3.0\nlog_level = 'debug'\n")
    monkeypatch.setenv("GMX_PRICES_CONFIG", str(config_path))
    monkeypatch.setenv("GMX_PRICES_MAX_TRIES", "5")

    settings = PricesSettings(retry_backoff=0.5)

    assert settings.max_tries == 5
    assert settings.retry_backoff == 0.5
    assert settings.log_level == "DEBUG"


def test_zero_timeout_disables_request_timeout():
    assert PricesSettings(rpc_timeout=0).request_timeout is None
    assert PricesSettings(rpc_timeout=12).request_timeout == 12
    assert PricesSettings().request_timeout == 30.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pool_batch_size": 0},
        {"max_tries": 0},
        {"batch_delay": -1},
        {"networks": []},
        {"networks": ["solana"]},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValidationError):
        PricesSettings(**kwargs)


def test_duplicate_networks_collapsed():
    settings = PricesSettings(networks=["arbitrum", "arbitrum"])
    assert settings.networks == [Network.ARBITRUM]


def test_as_safe_dict_redacts_rpc_keys():
    settings = PricesSettings(
        rpc_overrides={"arbitrum": "https://arb-mainnet.g.alchemy.com/v2/SECRETKEY"}
    )

    dumped = settings.as_safe_dict()

    assert dumped["rpc_overrides"] == {
        "arbitrum": "https://arb-mainnet.g.alchemy.com/***"
    }
    assert "SECRETKEY" not in str(dumped)
    assert dumped["output_dir"] == "dist"


def test_plain_rpc_url_variables_are_honoured(monkeypatch):
    monkeypatch.setenv("ARBITRUM_RPC_URL", "https://arb.example/rpc")
    monkeypatch.setenv("AVALANCHE_RPC_URL", "https://avax.example/rpc")

    configs = {c.slug: c for c in PricesSettings().network_configs}

    assert configs[Network.ARBITRUM].rpc_url == "https://arb.example/rpc"
    assert configs[Network.AVALANCHE].rpc_url == "https://avax.example/rpc"


def test_explicit_override_beats_plain_rpc_url_variable(monkeypatch):
    monkeypatch.setenv("ARBITRUM_RPC_URL", "https://arb.example/rpc")
    monkeypatch.setenv(
        "GMX_PRICES_RPC_OVERRIDES", '{"arbitrum": "https://arb.override/rpc"}'
    )

    settings = PricesSettings()

    assert settings.rpc_overrides == {Network.ARBITRUM: "https://arb.override/rpc"}
    assert settings.network_configs[0].rpc_url == "https://arb.override/rpc"
