from __future__ import annotations

from .base import BaseChainReader
from .chain import Web3ChainReader, describe_error
from .price_api import PriceServiceClient, PriceServiceError

__all__ = [
    "BaseChainReader",
    "Web3ChainReader",
    "describe_error",
    "PriceServiceClient",
    "PriceServiceError",
]
