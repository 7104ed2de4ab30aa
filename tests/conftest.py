from __future__ import annotations

from typing import Any, Sequence

import pytest

from gmx_prices.clients.base import BaseChainReader
from gmx_prices.domain import (
    MarketData,
    Pool,
    PoolTokenPrice,
    PoolValueInfo,
    PriceQuote,
    TokenMeta,
    VaultInfo,
    VaultTokenPrice,
)
from gmx_prices.processors.batching import BatchPolicy

USD = 10**30

WETH = "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1"
USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
WBTC = "0x2f2a2543B76A4166549F7aaB2e75Bef0aefC5B0f"
SOL = "0x2bcC6D6CdBbDC0a4071e48bb3B969b06B3330c07"
DOGE = "0xC4da4c24fd591125c3F47b340b6f4f76111883d8"

GM_ETH = "0x70d95587d40A2caf56bd97485aB3Eec10Bee6336"
GM_BTC = "0x47c031236e19d024b42f8AE6780E44A573170703"
GM_SOL = "0x09400D9DB990D5ed3f35D7be61DfAEB900Af03C9"
GM_DOGE = "0x6853EA96FF216fAb11D2d930CE3C508556A4bdc4"

GLV_ETH = "0x528A5bac7E746C9A509A1f4F6dF58A03d44279F9"
GLV_BTC = "0xdF03EEd325b82bC1d4Db8b49c30ecc9E05104b96"


def quote(token: str, min_price: int, max_price: int | None = None) -> PriceQuote:
    return PriceQuote(
        token=token,
        min_price=min_price,
        max_price=min_price if max_price is None else max_price,
    )


@pytest.fixture
def fast_policy() -> BatchPolicy:
    return BatchPolicy(batch_size=5, batch_delay=0, max_tries=3, backoff_base=0)


@pytest.fixture
def market_data() -> MarketData:
    """Four pools; the DOGE pool has no index quote."""
    pools = [
        Pool(GM_ETH, WETH, WETH, USDC),
        Pool(GM_BTC, WBTC, WBTC, USDC),
        Pool(GM_SOL, SOL, WETH, USDC),
        Pool(GM_DOGE, DOGE, WETH, USDC),
    ]
    quotes = {
        q.token.lower(): q
        for q in [
            quote(WETH, 3000 * 10**12, 3001 * 10**12),
            quote(USDC, 10**24),
            quote(WBTC, 60000 * 10**22),
            quote(SOL, 150 * 10**21),
        ]
    }
    tokens = {
        WETH.lower(): TokenMeta("WETH", 18),
        USDC.lower(): TokenMeta("USDC", 6),
        WBTC.lower(): TokenMeta("BTC", 8),
        SOL.lower(): TokenMeta("SOL", 9),
        DOGE.lower(): TokenMeta("DOGE", 8),
    }
    return MarketData(pools=pools, quotes=quotes, tokens=tokens)


class FakeChainReader(BaseChainReader):
    """In-memory chain reader recording every call.

    ``pool_prices`` / ``vault_prices`` map lowercase token addresses to either
    a result or an exception to raise. ``failures`` makes the first N calls
    for an address raise before answering.
    """

    def __init__(
        self,
        network: str = "arbitrum",
        pool_prices: dict[str, Any] | None = None,
        vaults: list[VaultInfo] | Exception | None = None,
        vault_prices: dict[str, Any] | None = None,
        failures: dict[str, int] | None = None,
    ):
        self.network = network
        self.pool_prices = pool_prices or {}
        self.vaults = vaults if vaults is not None else []
        self.vault_prices = vault_prices or {}
        self.failures = dict(failures or {})
        self.pool_calls: list[dict[str, Any]] = []
        self.vault_list_calls: list[tuple[int, int]] = []
        self.vault_calls: list[dict[str, Any]] = []

    def _answer(self, table: dict[str, Any], address: str) -> Any:
        key = address.lower()
        if self.failures.get(key, 0) > 0:
            self.failures[key] -= 1
            raise ConnectionError(f"rpc unavailable for {address}")
        answer = table.get(key)
        if answer is None:
            raise RuntimeError(f"execution reverted for {address}")
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def get_pool_token_price(
        self,
        pool: Pool,
        index_price: PriceQuote,
        long_price: PriceQuote,
        short_price: PriceQuote,
        pnl_factor_type: bytes,
        maximize: bool = False,
    ) -> PoolTokenPrice:
        self.pool_calls.append(
            {
                "pool": pool,
                "prices": (index_price, long_price, short_price),
                "pnl_factor_type": pnl_factor_type,
                "maximize": maximize,
            }
        )
        return self._answer(self.pool_prices, pool.pool_token)

    async def get_vault_info_list(self, start: int, end: int) -> list[VaultInfo]:
        self.vault_list_calls.append((start, end))
        if isinstance(self.vaults, Exception):
            raise self.vaults
        return list(self.vaults)

    async def get_vault_token_price(
        self,
        pool_tokens: Sequence[str],
        index_prices: Sequence[PriceQuote],
        long_price: PriceQuote,
        short_price: PriceQuote,
        vault_token: str,
        maximize: bool = False,
    ) -> VaultTokenPrice:
        self.vault_calls.append(
            {
                "pool_tokens": list(pool_tokens),
                "index_prices": list(index_prices),
                "collateral": (long_price, short_price),
                "vault_token": vault_token,
                "maximize": maximize,
            }
        )
        return self._answer(self.vault_prices, vault_token)


def pool_price(price: int, pool_value: int) -> PoolTokenPrice:
    return PoolTokenPrice(price=price, info=PoolValueInfo(pool_value=pool_value))


@pytest.fixture
def fake_reader_cls() -> type[FakeChainReader]:
    return FakeChainReader
