from __future__ import annotations

import logging

import pytest

from conftest import GLV_ETH, GM_BTC, GM_ETH, USD, USDC, WETH, FakeChainReader, pool_price
from gmx_prices.constants import Network
from gmx_prices.domain import MarketData, VaultInfo, VaultTokenPrice
from gmx_prices.pipeline import run as pipeline_run
from gmx_prices.pipeline.context import NoPoolsError
from gmx_prices.settings import PricesSettings
from gmx_prices.state import AppState


def _state(**overrides) -> AppState:
    settings = PricesSettings(
        batch_delay=0, retry_backoff=0, rpc_timeout=None, **overrides
    )
    return AppState(settings=settings, logger=logging.getLogger("test"))


@pytest.fixture
def wired(monkeypatch, market_data):
    """Route both networks to fakes; returns the per-network readers and data."""
    readers = {
        "arbitrum": FakeChainReader(
            network="arbitrum",
            pool_prices={GM_ETH.lower(): pool_price(USD, 10 * USD)},
            vaults=[VaultInfo(GLV_ETH, WETH, USDC, (GM_ETH,))],
            vault_prices={GLV_ETH.lower(): VaultTokenPrice(2 * USD, 0, 7 * 10**18)},
        ),
        "avalanche": FakeChainReader(network="avalanche", vaults=RuntimeError("boom")),
    }
    data = {"arbitrum": market_data, "avalanche": market_data}

    async def fake_fetch(state, network):
        return data[network.slug.value]

    def build_reader(network, timeout=None):
        return readers[network.slug.value]

    monkeypatch.setattr(pipeline_run, "_build_reader", build_reader)
    monkeypatch.setattr(pipeline_run, "_fetch_market_data", fake_fetch)
    return readers, data


@pytest.mark.asyncio
async def test_run_prices_collects_every_network(wired):
    all_prices = await pipeline_run.run_prices(_state())

    assert list(all_prices.networks) == ["arbitrum", "avalanche"]
    arbitrum = all_prices.networks["arbitrum"]
    assert [(r.address, r.price, r.pool_value) for r in arbitrum.gm] == [
        (GM_ETH, 1.0, 10.0)
    ]
    assert [(r.address, r.price, r.tvl) for r in arbitrum.glv] == [(GLV_ETH, 2.0, 7.0)]
    # Failed discovery and failed reads degrade to empty categories
    avalanche = all_prices.networks["avalanche"]
    assert avalanche.gm == []
    assert avalanche.glv == []
    assert all_prices.updated.endswith("Z")


@pytest.mark.asyncio
async def test_run_prices_only_selected_networks(wired):
    readers, _ = wired

    all_prices = await pipeline_run.run_prices(_state(networks=[Network.AVALANCHE]))

    assert list(all_prices.networks) == ["avalanche"]
    assert readers["arbitrum"].pool_calls == []


@pytest.mark.asyncio
async def test_run_prices_applies_whitelist(wired):
    readers, _ = wired

    await pipeline_run.run_prices(
        _state(networks=[Network.ARBITRUM], index_token_whitelist=["BTC"])
    )

    assert {c["pool"].pool_token for c in readers["arbitrum"].pool_calls} == {GM_BTC}


@pytest.mark.asyncio
async def test_run_prices_raises_when_network_lists_no_pools(wired):
    _, data = wired
    data["avalanche"] = MarketData(pools=[], quotes={}, tokens={})

    with pytest.raises(NoPoolsError, match=r"\[avalanche\]"):
        await pipeline_run.run_prices(_state())


@pytest.mark.asyncio
async def test_price_service_failure_propagates(monkeypatch, wired):
    async def failing_fetch(state, network):
        raise ConnectionError("api down")

    monkeypatch.setattr(pipeline_run, "_fetch_market_data", failing_fetch)

    with pytest.raises(ConnectionError):
        await pipeline_run.run_prices(_state(networks=[Network.ARBITRUM]))


@pytest.mark.asyncio
async def test_readers_get_the_configured_request_timeout(monkeypatch, wired):
    readers, _ = wired
    timeouts: dict[str, float | None] = {}

    def build_reader(network, timeout=None):
        timeouts[network.slug.value] = timeout
        return readers[network.slug.value]

    monkeypatch.setattr(pipeline_run, "_build_reader", build_reader)
    settings = PricesSettings(batch_delay=0, retry_backoff=0, rpc_timeout=7.5)

    await pipeline_run.run_prices(
        AppState(settings=settings, logger=logging.getLogger("test"))
    )

    assert timeouts == {"arbitrum": 7.5, "avalanche": 7.5}
