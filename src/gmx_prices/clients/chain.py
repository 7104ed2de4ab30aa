from __future__ import annotations

import asyncio
from typing import Any, Sequence

from eth_typing import URI, ChecksumAddress
from web3 import HTTPProvider, Web3
from web3.contract import Contract

from ..abi import load_glv_reader_abi, load_reader_abi
from ..constants import NetworkConfig
from ..domain import (
    Pool,
    PoolTokenPrice,
    PoolValueInfo,
    PriceQuote,
    VaultInfo,
    VaultTokenPrice,
)
from ..logger import TRACE, get_logger
from .base import BaseChainReader

logger = get_logger(__name__)

DEFAULT_RPC_TIMEOUT = 30.0


def http_provider(rpc_url: str, timeout: float | None) -> HTTPProvider:
    return HTTPProvider(URI(rpc_url), request_kwargs={"timeout": timeout})


def describe_error(exc: BaseException) -> str:
    """Short human-readable text for an RPC or revert error."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


class Web3ChainReader(BaseChainReader):
    """Chain reader backed by a synchronous web3 HTTP provider.

    Blocking calls are pushed to a worker thread so reads can overlap. The
    provider is shared read-only by every concurrent call.

    ``timeout`` bounds each HTTP request in seconds and is enforced by the
    provider inside the worker thread, so a slow node frees the thread before
    the attempt is retried. ``None`` waits indefinitely.
    """

    def __init__(
        self,
        network: NetworkConfig,
        w3: Web3 | None = None,
        timeout: float | None = DEFAULT_RPC_TIMEOUT,
    ):
        self.network = network.slug.value
        self.w3 = w3 or Web3(http_provider(network.rpc_url, timeout))
        self.data_store: ChecksumAddress = Web3.to_checksum_address(
            network.contracts.data_store
        )
        self.reader: Contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(network.contracts.reader),
            abi=load_reader_abi(),
        )
        self.glv_reader: Contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(network.contracts.glv_reader),
            abi=load_glv_reader_abi(),
        )

    @staticmethod
    async def _call(call: Any) -> Any:
        return await asyncio.to_thread(call.call)

    async def get_pool_token_price(
        self,
        pool: Pool,
        index_price: PriceQuote,
        long_price: PriceQuote,
        short_price: PriceQuote,
        pnl_factor_type: bytes,
        maximize: bool = False,
    ) -> PoolTokenPrice:
        market_props = (
            Web3.to_checksum_address(pool.pool_token),
            Web3.to_checksum_address(pool.index_token),
            Web3.to_checksum_address(pool.long_token),
            Web3.to_checksum_address(pool.short_token),
        )
        logger.log(TRACE, "getMarketTokenPrice(%s) on %s", pool.pool_token, self.network)
        price, info = await self._call(
            self.reader.functions.getMarketTokenPrice(
                self.data_store,
                market_props,
                index_price.as_band(),
                long_price.as_band(),
                short_price.as_band(),
                pnl_factor_type,
                maximize,
            )
        )
        return PoolTokenPrice(price=int(price), info=PoolValueInfo(*map(int, info)))

    async def get_vault_info_list(self, start: int, end: int) -> list[VaultInfo]:
        raw = await self._call(
            self.glv_reader.functions.getGlvInfoList(self.data_store, start, end)
        )
        vaults: list[VaultInfo] = []
        for glv, markets in raw:
            vault_token, long_token, short_token = glv
            vaults.append(
                VaultInfo(
                    vault_token=vault_token,
                    long_token=long_token,
                    short_token=short_token,
                    pools=tuple(markets),
                )
            )
        return vaults

    async def get_vault_token_price(
        self,
        pool_tokens: Sequence[str],
        index_prices: Sequence[PriceQuote],
        long_price: PriceQuote,
        short_price: PriceQuote,
        vault_token: str,
        maximize: bool = False,
    ) -> VaultTokenPrice:
        price, supply, value = await self._call(
            self.glv_reader.functions.getGlvTokenPrice(
                self.data_store,
                [Web3.to_checksum_address(addr) for addr in pool_tokens],
                [quote.as_band() for quote in index_prices],
                long_price.as_band(),
                short_price.as_band(),
                Web3.to_checksum_address(vault_token),
                maximize,
            )
        )
        return VaultTokenPrice(price=int(price), supply=int(supply), value=int(value))
