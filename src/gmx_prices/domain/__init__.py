"""Domain models for GM and GLV pricing."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Pool:
    """A GM pool as listed by the price service."""

    pool_token: str
    index_token: str
    long_token: str
    short_token: str

    @property
    def key(self) -> str:
        return self.pool_token.lower()


@dataclass(frozen=True)
class PriceQuote:
    """Oracle min/max band for one token, at native oracle precision."""

    token: str
    min_price: int
    max_price: int

    def as_band(self) -> tuple[int, int]:
        """Return the band in the ``(min, max)`` shape of ``Price.Props``."""
        return (self.min_price, self.max_price)


@dataclass(frozen=True)
class TokenMeta:
    symbol: str
    decimals: int


@dataclass(frozen=True)
class PoolValueInfo:
    """``MarketPoolValueInfo.Props`` returned by ``Reader.getMarketTokenPrice``."""

    pool_value: int
    long_pnl: int = 0
    short_pnl: int = 0
    net_pnl: int = 0
    long_token_amount: int = 0
    short_token_amount: int = 0
    long_token_usd: int = 0
    short_token_usd: int = 0
    total_borrowing_fees: int = 0
    borrowing_fee_pool_factor: int = 0
    impact_pool_amount: int = 0


@dataclass(frozen=True)
class PoolTokenPrice:
    """Result of ``Reader.getMarketTokenPrice``."""

    price: int
    info: PoolValueInfo


@dataclass(frozen=True)
class VaultInfo:
    """A GLV vault as discovered from ``GlvReader.getGlvInfoList``."""

    vault_token: str
    long_token: str
    short_token: str
    pools: tuple[str, ...] = ()


@dataclass(frozen=True)
class VaultTokenPrice:
    """Result of ``GlvReader.getGlvTokenPrice``.

    ``supply`` is returned by the reader but not used by the pipeline.
    """

    price: int
    supply: int
    value: int


@dataclass(frozen=True)
class PoolPriceResult:
    address: str
    name: str
    price: float
    pool_value: float

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "name": self.name,
            "price": self.price,
            "poolValue": self.pool_value,
        }


@dataclass(frozen=True)
class VaultPriceResult:
    address: str
    name: str
    price: float
    tvl: float

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "name": self.name,
            "price": self.price,
            "tvl": self.tvl,
        }


@dataclass
class MarketData:
    """Price-service snapshot for one network."""

    pools: list[Pool]
    quotes: dict[str, PriceQuote]  # lowercase token address -> quote
    tokens: dict[str, TokenMeta]  # lowercase token address -> metadata

    def quote_for(self, address: str) -> PriceQuote | None:
        return self.quotes.get(address.lower())

    def meta_for(self, address: str) -> TokenMeta | None:
        return self.tokens.get(address.lower())


@dataclass
class NetworkPrices:
    gm: list[PoolPriceResult] = field(default_factory=list)
    glv: list[VaultPriceResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "gm": [row.to_dict() for row in self.gm],
            "glv": [row.to_dict() for row in self.glv],
        }


@dataclass
class AllPrices:
    updated: str
    networks: dict[str, NetworkPrices] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "updated": self.updated,
            "networks": {
                slug: prices.to_dict() for slug, prices in self.networks.items()
            },
        }
