"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import dataclasses
import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import NETWORKS, Network, NetworkConfig
from .processors.batching import BatchPolicy

load_dotenv()

CONFIG_ENV_VAR = "GMX_PRICES_CONFIG"
LOCAL_CONFIG = Path("gmx-prices.toml")
USER_CONFIG = Path.home() / ".config" / "gmx-prices" / "config.toml"

# Plain per-network RPC variables, used when no explicit override is set
LEGACY_RPC_ENV_VARS: dict[Network, str] = {
    Network.ARBITRUM: "ARBITRUM_RPC_URL",
    Network.AVALANCHE: "AVALANCHE_RPC_URL",
}


class TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-precedence source reading a TOML file.

    Keys may live at the top level or under a ``[gmx_prices]`` table.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def _resolve_path(self) -> Path | None:
        if self._path is not None:
            return self._path if self._path.exists() else None
        for candidate in (LOCAL_CONFIG, USER_CONFIG):
            if candidate.exists():
                return candidate
        return None

    def __call__(self) -> dict[str, Any]:
        path = self._resolve_path()
        if path is None:
            return {}

        with path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get("gmx_prices", data)
        if not isinstance(body, dict):
            return {}
        return body


class PricesSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with GMX_PRICES_)
    - Config file (TOML), lowest precedence
    """

    # --- networks / endpoints ---
    networks: list[Network] = Field(default_factory=lambda: list(NETWORKS))
    rpc_overrides: dict[Network, str] = Field(
        default_factory=dict, validate_default=True
    )

    # --- output ---
    output_dir: Path = Path("dist")
    pages_dir: Path | None = None

    # --- RPC batching and retries ---
    pool_batch_size: int = Field(default=5, gt=0)
    vault_batch_size: int = Field(default=5, gt=0)
    batch_delay: float = Field(default=0.2, ge=0)
    max_tries: int = Field(default=3, gt=0)
    retry_backoff: float = Field(default=1.0, ge=0)
    rpc_timeout: float | None = Field(default=30.0, ge=0)
    vault_page_size: int = Field(default=100, gt=0)

    # --- pool filtering ---
    index_token_whitelist: list[str] | None = None

    # --- price service ---
    api_timeout: float = Field(default=10.0, gt=0)
    api_max_tries: int = Field(default=5, gt=0)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="GMX_PRICES_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("networks")
    @classmethod
    def dedupe_networks(cls, v: list[Network]) -> list[Network]:
        if not v:
            raise ValueError("at least one network must be selected")
        return list(dict.fromkeys(v))

    @field_validator("rpc_overrides")
    @classmethod
    def fill_legacy_rpc_urls(cls, v: dict[Network, str]) -> dict[Network, str]:
        merged: dict[Network, str] = {}
        for slug, env_var in LEGACY_RPC_ENV_VARS.items():
            url = os.environ.get(env_var)
            if url:
                merged[slug] = url
        merged.update(v)
        return merged

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get(CONFIG_ENV_VAR)
        cfg_path = Path(env_cfg) if env_cfg else None

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-ready dict with RPC credentials redacted."""
        data = self.model_dump(mode="json")
        data["rpc_overrides"] = {
            slug: _redact_url(url) for slug, url in data["rpc_overrides"].items()
        }
        return data

    @property
    def index_whitelist(self) -> frozenset[str] | None:
        """Upper-cased whitelist of index-token symbols, or None when disabled."""
        if self.index_token_whitelist is None:
            return None
        return frozenset(symbol.upper() for symbol in self.index_token_whitelist)

    @property
    def network_configs(self) -> list[NetworkConfig]:
        """Static network configs for the selected networks, RPC overrides applied."""
        configs: list[NetworkConfig] = []
        for slug in self.networks:
            config = NETWORKS[slug]
            override = self.rpc_overrides.get(slug)
            if override:
                config = dataclasses.replace(config, rpc_url=override)
            configs.append(config)
        return configs

    @property
    def request_timeout(self) -> float | None:
        """Per-request RPC timeout in seconds; 0 disables it."""
        return self.rpc_timeout or None

    @property
    def pool_policy(self) -> BatchPolicy:
        return BatchPolicy(
            batch_size=self.pool_batch_size,
            batch_delay=self.batch_delay,
            max_tries=self.max_tries,
            backoff_base=self.retry_backoff,
        )

    @property
    def vault_policy(self) -> BatchPolicy:
        return dataclasses.replace(self.pool_policy, batch_size=self.vault_batch_size)


def _redact_url(url: str) -> str:
    """Hide userinfo, path and query of an RPC URL; API keys usually live there."""
    parts = urlsplit(url)
    if not parts.netloc:
        return "***redacted***"
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    redacted = urlunsplit((parts.scheme, host, "", "", ""))
    if parts.username or parts.path.strip("/") or parts.query:
        redacted += "/***"
    return redacted
