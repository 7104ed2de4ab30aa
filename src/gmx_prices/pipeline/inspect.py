"""Detailed pricing for a handful of target GM pools."""

from __future__ import annotations

from dataclasses import dataclass

from ..clients.chain import describe_error
from ..constants import NetworkConfig
from ..domain import MarketData, Pool, PoolPriceResult
from ..processors import process_batches
from ..processors.pool_prices import (
    MISSING_QUOTES,
    pool_name,
    pool_price_reader,
    pool_result,
    symbol_of,
    viable_pools,
)
from ..state import AppState
from ..units import USD_DECIMALS, midpoint, rescale_oracle_quote, to_display_float
from .context import NetworkContext, NoPoolsError
from . import run


@dataclass(frozen=True)
class UnderlyingPrice:
    role: str  # "index", "long", "short" or "collateral"
    symbol: str
    price: float | None


@dataclass(frozen=True)
class PoolInspection:
    pool: Pool
    name: str
    result: PoolPriceResult | None
    underlying: tuple[UnderlyingPrice, ...]
    error: str | None = None  # why ``result`` is missing


def quote_mid_usd(data: MarketData, token: str) -> float | None:
    """Mid oracle price of one whole token in USD, None without quote or metadata."""
    quote = data.quote_for(token)
    meta = data.meta_for(token)
    if quote is None or meta is None:
        return None
    mid = midpoint(quote.min_price, quote.max_price)
    return to_display_float(rescale_oracle_quote(mid, meta.decimals), USD_DECIMALS)


def underlying_prices(pool: Pool, data: MarketData) -> tuple[UnderlyingPrice, ...]:
    def _row(role: str, token: str) -> UnderlyingPrice:
        return UnderlyingPrice(role, symbol_of(data, token), quote_mid_usd(data, token))

    rows = [_row("index", pool.index_token)]
    if pool.long_token.lower() == pool.short_token.lower():
        rows.append(_row("collateral", pool.long_token))
    else:
        rows.append(_row("long", pool.long_token))
        rows.append(_row("short", pool.short_token))
    return tuple(rows)


async def inspect_pools(
    state: AppState, network: NetworkConfig, targets: list[str]
) -> list[PoolInspection]:
    """Price the ``targets`` pools on ``network`` and gather their underlying prices.

    Every listed target gets an inspection, in price-service order. A pool
    that could not be priced carries the reason in ``error``.

    Raises:
        NoPoolsError: If none of the targets is listed by the price service.
    """
    wanted = {address.lower() for address in targets}
    ctx = NetworkContext(
        state=state,
        network=network,
        reader=run._build_reader(network, state.settings.request_timeout),
    )
    await run.load_market_data(ctx)
    data = ctx.market_data_required

    pools = [pool for pool in data.pools if pool.key in wanted]
    if not pools:
        raise NoPoolsError(ctx.slug, "no target markets found in GMX API")

    subset = MarketData(pools=pools, quotes=data.quotes, tokens=data.tokens)
    priced = {candidate.pool.key: candidate for candidate in viable_pools(subset)}
    policy = state.settings.pool_policy
    read_with_retry = pool_price_reader(ctx.reader, policy)

    async def _inspect(pool: Pool) -> PoolInspection:
        result: PoolPriceResult | None = None
        error: str | None = None
        candidate = priced.get(pool.key)
        if candidate is None:
            error = MISSING_QUOTES
        else:
            try:
                result = pool_result(pool, await read_with_retry(candidate), data)
            except Exception as exc:
                error = describe_error(exc)
                state.logger.warning(
                    "[%s] Skipping GM %s: %s", ctx.slug, pool.pool_token, error
                )
        return PoolInspection(
            pool=pool,
            name=pool_name(pool, data),
            result=result,
            underlying=underlying_prices(pool, data),
            error=error,
        )

    return await process_batches(pools, _inspect, policy)
