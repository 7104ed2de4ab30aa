from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..domain import Pool, PoolTokenPrice, PriceQuote, VaultInfo, VaultTokenPrice


class BaseChainReader(ABC):
    """View calls against one network's GMX Reader and GlvReader.

    Implementations are bound to a network and pass its DataStore address
    themselves. Failures surface as exceptions; callers decide whether to
    retry or skip.
    """

    network: str

    @abstractmethod
    async def get_pool_token_price(
        self,
        pool: Pool,
        index_price: PriceQuote,
        long_price: PriceQuote,
        short_price: PriceQuote,
        pnl_factor_type: bytes,
        maximize: bool = False,
    ) -> PoolTokenPrice:
        """``Reader.getMarketTokenPrice`` for one GM pool."""
        ...

    @abstractmethod
    async def get_vault_info_list(self, start: int, end: int) -> list[VaultInfo]:
        """``GlvReader.getGlvInfoList`` over the ``[start, end)`` index range."""
        ...

    @abstractmethod
    async def get_vault_token_price(
        self,
        pool_tokens: Sequence[str],
        index_prices: Sequence[PriceQuote],
        long_price: PriceQuote,
        short_price: PriceQuote,
        vault_token: str,
        maximize: bool = False,
    ) -> VaultTokenPrice:
        """``GlvReader.getGlvTokenPrice`` for one GLV vault."""
        ...
