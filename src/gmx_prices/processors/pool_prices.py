"""GM pool token pricing via ``Reader.getMarketTokenPrice``."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass

from ..clients.base import BaseChainReader
from ..clients.chain import describe_error
from ..constants import MAX_PNL_FACTOR_FOR_TRADERS_KEY
from ..domain import MarketData, Pool, PoolPriceResult, PoolTokenPrice, PriceQuote
from ..logger import get_logger
from ..units import USD_DECIMALS, to_display_float
from .batching import BatchPolicy, process_batches, with_retry

logger = get_logger(__name__)

MISSING_SYMBOL = "?"
MISSING_QUOTES = "Missing oracle prices"


@dataclass(frozen=True)
class PricedPool:
    """A pool with all three oracle quotes resolved."""

    pool: Pool
    index_price: PriceQuote
    long_price: PriceQuote
    short_price: PriceQuote


def symbol_of(data: MarketData, address: str) -> str:
    meta = data.meta_for(address)
    return meta.symbol if meta else MISSING_SYMBOL


def pool_name(pool: Pool, data: MarketData) -> str:
    """``"<index>/USD [<long>-<short>]"`` with ``?`` for unknown tokens."""
    return (
        f"{symbol_of(data, pool.index_token)}/USD "
        f"[{symbol_of(data, pool.long_token)}-{symbol_of(data, pool.short_token)}]"
    )


def viable_pools(
    data: MarketData, whitelist: Collection[str] | None = None
) -> list[PricedPool]:
    """Pools with quotes for the index, long and short tokens.

    When ``whitelist`` is given, only pools whose index-token symbol is in it
    (case-insensitive) are kept. Pools with unknown index metadata are dropped
    in that case.
    """
    allowed = {s.upper() for s in whitelist} if whitelist is not None else None
    priced: list[PricedPool] = []
    for pool in data.pools:
        index_price = data.quote_for(pool.index_token)
        long_price = data.quote_for(pool.long_token)
        short_price = data.quote_for(pool.short_token)
        if index_price is None or long_price is None or short_price is None:
            continue
        if allowed is not None:
            meta = data.meta_for(pool.index_token)
            if meta is None or meta.symbol.upper() not in allowed:
                continue
        priced.append(PricedPool(pool, index_price, long_price, short_price))
    return priced


def pool_price_reader(
    reader: BaseChainReader, policy: BatchPolicy
) -> Callable[[PricedPool], Awaitable[PoolTokenPrice]]:
    """Retrying ``getMarketTokenPrice`` read for one priced pool."""

    async def _read(candidate: PricedPool) -> PoolTokenPrice:
        return await reader.get_pool_token_price(
            candidate.pool,
            candidate.index_price,
            candidate.long_price,
            candidate.short_price,
            MAX_PNL_FACTOR_FOR_TRADERS_KEY,
            False,
        )

    return with_retry(_read, policy, describe=lambda c: f"GM {c.pool.pool_token}")


def pool_result(pool: Pool, price: PoolTokenPrice, data: MarketData) -> PoolPriceResult:
    return PoolPriceResult(
        address=pool.pool_token,
        name=pool_name(pool, data),
        price=to_display_float(price.price, USD_DECIMALS),
        pool_value=to_display_float(price.info.pool_value, USD_DECIMALS),
    )


async def fetch_pool_prices(
    reader: BaseChainReader,
    data: MarketData,
    policy: BatchPolicy,
    whitelist: Collection[str] | None = None,
) -> list[PoolPriceResult]:
    """Price every viable GM pool on ``reader``'s network.

    Args:
        reader: Chain reader bound to the network.
        data: Pools, oracle quotes and token metadata from the price service.
        policy: Batch size, pacing and retry settings for the reads.
        whitelist: Optional set of accepted index-token symbols.

    Returns:
        One result per pool that was read successfully, sorted by pool value
        descending. Pools whose read keeps failing are logged and left out.
    """
    candidates = viable_pools(data, whitelist)
    logger.info(
        "[%s] Pricing %d of %d GM pools",
        reader.network,
        len(candidates),
        len(data.pools),
    )

    read_with_retry = pool_price_reader(reader, policy)

    async def _price(candidate: PricedPool) -> PoolPriceResult | None:
        pool = candidate.pool
        try:
            result = await read_with_retry(candidate)
        except Exception as exc:
            logger.warning(
                "[%s] Skipping GM %s: %s",
                reader.network,
                pool.pool_token,
                describe_error(exc),
            )
            return None
        return pool_result(pool, result, data)

    results = await process_batches(candidates, _price, policy)
    results.sort(key=lambda r: r.pool_value, reverse=True)
    return results
