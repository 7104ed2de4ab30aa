"""Network deployments and protocol constants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from eth_abi import encode
from eth_utils import keccak


class Network(str, Enum):
    ARBITRUM = "arbitrum"
    AVALANCHE = "avalanche"


@dataclass(frozen=True)
class ContractAddresses:
    data_store: str
    reader: str
    glv_reader: str


@dataclass(frozen=True)
class NetworkConfig:
    slug: Network
    name: str
    chain_id: int
    rpc_url: str
    api_url: str
    contracts: ContractAddresses


ARBITRUM = NetworkConfig(
    slug=Network.ARBITRUM,
    name="Arbitrum",
    chain_id=42161,
    rpc_url="https://arb1.arbitrum.io/rpc",
    api_url="https://arbitrum-api.gmxinfra.io",
    contracts=ContractAddresses(
        data_store="0xFD70de6b91282D8017aA4E741e9Ae325CAb992d8",
        reader="0x470fbC46bcC0f16532691Df360A07d8Bf5ee0789",
        glv_reader="0x2C670A23f1E798184647288072e84054938B5497",
    ),
)

AVALANCHE = NetworkConfig(
    slug=Network.AVALANCHE,
    name="Avalanche",
    chain_id=43114,
    rpc_url="https://api.avax.network/ext/bc/C/rpc",
    api_url="https://avalanche-api.gmxinfra.io",
    contracts=ContractAddresses(
        data_store="0x2F0b22339414ADeD7D5F06f9D604c7fF5b2fe3f6",
        reader="0x62Cb8740E6986B29dC671B2EB596676f60590A5B",
        glv_reader="0x5C6905A3002f989E1625910ba1793d40a031f947",
    ),
)

NETWORKS: dict[Network, NetworkConfig] = {
    Network.ARBITRUM: ARBITRUM,
    Network.AVALANCHE: AVALANCHE,
}


def hash_string_key(name: str) -> bytes:
    """DataStore key for a string identifier: ``keccak256(abi.encode(name))``."""
    return keccak(encode(["string"], [name]))


# Pool value is computed with the trader PnL cap, same as the GMX UI.
MAX_PNL_FACTOR_FOR_TRADERS_KEY: bytes = hash_string_key("MAX_PNL_FACTOR_FOR_TRADERS")

GLV_PAGE_SIZE = 100

# Price-service HTTP statuses worth retrying
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
