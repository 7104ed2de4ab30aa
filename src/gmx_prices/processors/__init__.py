from __future__ import annotations

from .batching import BatchPolicy, process_batches, with_retry
from .pool_prices import fetch_pool_prices, viable_pools
from .vault_prices import fetch_vault_prices

__all__ = [
    "BatchPolicy",
    "process_batches",
    "with_retry",
    "fetch_pool_prices",
    "viable_pools",
    "fetch_vault_prices",
]
