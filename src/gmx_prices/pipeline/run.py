"""High-level pipeline orchestration."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from ..clients import PriceServiceClient, Web3ChainReader
from ..clients.base import BaseChainReader
from ..constants import NetworkConfig
from ..domain import AllPrices, MarketData, NetworkPrices
from ..processors import fetch_pool_prices, fetch_vault_prices
from ..state import AppState
from .context import NetworkContext, NoPoolsError


def _build_reader(
    network: NetworkConfig, timeout: float | None = None
) -> BaseChainReader:
    return Web3ChainReader(network, timeout=timeout)


async def _fetch_market_data(state: AppState, network: NetworkConfig) -> MarketData:
    client = PriceServiceClient(
        network.api_url,
        timeout=state.settings.api_timeout,
        max_tries=state.settings.api_max_tries,
    )
    return await client.fetch_market_data()


async def load_market_data(ctx: NetworkContext) -> None:
    """Fetch pools, tickers and tokens; raise NoPoolsError when no pool is listed."""
    log = ctx.state.logger
    log.info("[%s] Fetching data...", ctx.network.name)
    data = await _fetch_market_data(ctx.state, ctx.network)
    if not data.pools:
        raise NoPoolsError(ctx.slug)
    log.info(
        "[%s] Found %d markets, fetching prices...", ctx.network.name, len(data.pools)
    )
    ctx.market_data = data


async def price_network(ctx: NetworkContext) -> None:
    """Price GM pools, then GLV vaults, for one network."""
    s = ctx.state.settings
    data = ctx.market_data_required

    # Sequential to avoid RPC rate limits on public endpoints
    gm = await fetch_pool_prices(ctx.reader, data, s.pool_policy, s.index_whitelist)
    glv = await fetch_vault_prices(
        ctx.reader, data, s.vault_policy, page_size=s.vault_page_size
    )
    ctx.prices = NetworkPrices(gm=gm, glv=glv)

    ctx.state.logger.info(
        "[%s] Done: %d GM tokens, %d GLV vaults", ctx.network.name, len(gm), len(glv)
    )


async def run_network(state: AppState, network: NetworkConfig) -> NetworkPrices:
    reader = _build_reader(network, state.settings.request_timeout)
    ctx = NetworkContext(state=state, network=network, reader=reader)
    await load_market_data(ctx)
    await price_network(ctx)
    return ctx.prices_required


async def run_prices(state: AppState) -> AllPrices:
    """Price every configured network concurrently.

    Per-item and per-category failures are absorbed further down; what
    reaches the caller is a price-service failure or NoPoolsError.

    Args:
        state: Application state containing settings and logger

    Returns:
        Results keyed by network slug, in configuration order.
    """
    log = state.logger
    updated = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    networks = state.settings.network_configs
    log.info("Fetching GM/GLV token prices for %d network(s)...", len(networks))

    results = await asyncio.gather(
        *(run_network(state, network) for network in networks)
    )

    all_prices = AllPrices(updated=updated.replace("+00:00", "Z"))
    for network, prices in zip(networks, results):
        all_prices.networks[network.slug.value] = prices
    return all_prices
