"""GLV vault discovery and pricing via ``GlvReader``."""

from __future__ import annotations

from dataclasses import dataclass

from ..clients.base import BaseChainReader
from ..clients.chain import describe_error
from ..constants import GLV_PAGE_SIZE
from ..domain import (
    MarketData,
    Pool,
    PriceQuote,
    VaultInfo,
    VaultPriceResult,
    VaultTokenPrice,
)
from ..logger import get_logger
from ..units import GLV_VALUE_DECIMALS, USD_DECIMALS, to_display_float
from .batching import BatchPolicy, process_batches, with_retry
from .pool_prices import symbol_of

logger = get_logger(__name__)


@dataclass(frozen=True)
class PricedVault:
    """A vault with collateral quotes and its priceable constituents.

    ``pool_tokens`` and ``index_prices`` are parallel and keep the vault's
    constituent order.
    """

    vault: VaultInfo
    long_price: PriceQuote
    short_price: PriceQuote
    pool_tokens: tuple[str, ...]
    index_prices: tuple[PriceQuote, ...]


def vault_name(vault: VaultInfo, data: MarketData) -> str:
    return (
        f"GLV [{symbol_of(data, vault.long_token)}-{symbol_of(data, vault.short_token)}]"
    )


def priceable_vault(
    vault: VaultInfo, data: MarketData, pools_by_token: dict[str, Pool]
) -> PricedVault | None:
    """Resolve a vault's inputs, or None when it cannot be priced.

    Constituents with no known pool or no index quote are dropped. A vault
    missing a collateral quote or left with no constituents is not priceable.
    """
    long_price = data.quote_for(vault.long_token)
    short_price = data.quote_for(vault.short_token)
    if long_price is None or short_price is None:
        return None

    pool_tokens: list[str] = []
    index_prices: list[PriceQuote] = []
    for pool_token in vault.pools:
        pool = pools_by_token.get(pool_token.lower())
        if pool is None:
            continue
        index_price = data.quote_for(pool.index_token)
        if index_price is None:
            continue
        pool_tokens.append(pool_token)
        index_prices.append(index_price)

    if not pool_tokens:
        return None
    return PricedVault(
        vault=vault,
        long_price=long_price,
        short_price=short_price,
        pool_tokens=tuple(pool_tokens),
        index_prices=tuple(index_prices),
    )


async def discover_vaults(
    reader: BaseChainReader, policy: BatchPolicy, page_size: int = GLV_PAGE_SIZE
) -> list[VaultInfo] | None:
    """List up to ``page_size`` GLV vaults; None when the discovery read fails."""

    async def _list(end: int) -> list[VaultInfo]:
        return await reader.get_vault_info_list(0, end)

    list_with_retry = with_retry(_list, policy, describe=lambda _: "GLV discovery")
    try:
        return await list_with_retry(page_size)
    except Exception as exc:
        logger.warning(
            "[%s] Could not fetch GLV info: %s", reader.network, describe_error(exc)
        )
        return None


async def fetch_vault_prices(
    reader: BaseChainReader,
    data: MarketData,
    policy: BatchPolicy,
    page_size: int = GLV_PAGE_SIZE,
) -> list[VaultPriceResult]:
    """Discover GLV vaults on ``reader``'s network and price them.

    The constituent lookup uses every listed pool, priced or not. A failed
    discovery read yields an empty list. A failed price read drops only that
    vault. Results are sorted by TVL descending.
    """
    vaults = await discover_vaults(reader, policy, page_size)
    if not vaults:
        return []

    pools_by_token = {pool.key: pool for pool in data.pools}
    candidates = [
        priced
        for priced in (priceable_vault(v, data, pools_by_token) for v in vaults)
        if priced is not None
    ]
    logger.info(
        "[%s] Pricing %d of %d GLV vaults", reader.network, len(candidates), len(vaults)
    )

    async def _read(candidate: PricedVault) -> VaultTokenPrice:
        return await reader.get_vault_token_price(
            candidate.pool_tokens,
            candidate.index_prices,
            candidate.long_price,
            candidate.short_price,
            candidate.vault.vault_token,
            False,
        )

    read_with_retry = with_retry(
        _read, policy, describe=lambda c: f"GLV {c.vault.vault_token}"
    )

    async def _price(candidate: PricedVault) -> VaultPriceResult | None:
        vault = candidate.vault
        try:
            result = await read_with_retry(candidate)
        except Exception as exc:
            logger.warning(
                "[%s] Skipping GLV %s: %s",
                reader.network,
                vault.vault_token,
                describe_error(exc),
            )
            return None
        return VaultPriceResult(
            address=vault.vault_token,
            name=vault_name(vault, data),
            price=to_display_float(result.price, USD_DECIMALS),
            tvl=to_display_float(result.value, GLV_VALUE_DECIMALS),
        )

    results = await process_batches(candidates, _price, policy)
    results.sort(key=lambda r: r.tvl, reverse=True)
    return results
