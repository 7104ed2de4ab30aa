from __future__ import annotations

from dataclasses import dataclass

from ..clients.base import BaseChainReader
from ..constants import NetworkConfig
from ..domain import MarketData, NetworkPrices
from ..state import AppState


class NoPoolsError(Exception):
    """The price service listed no usable pools for a requested network."""

    def __init__(self, network: str, detail: str = "no GM pools found"):
        super().__init__(f"[{network}] {detail}")
        self.network = network


@dataclass
class NetworkContext:
    state: AppState
    network: NetworkConfig
    reader: BaseChainReader
    market_data: MarketData | None = None
    prices: NetworkPrices | None = None

    @property
    def slug(self) -> str:
        return self.network.slug.value

    @property
    def market_data_required(self) -> MarketData:
        if self.market_data is None:
            raise RuntimeError(
                "Market data has not been set. Ensure load_market_data() is called before accessing this property."
            )
        return self.market_data

    @property
    def prices_required(self) -> NetworkPrices:
        if self.prices is None:
            raise RuntimeError(
                "Prices have not been set. Ensure price_network() is called before accessing this property."
            )
        return self.prices
