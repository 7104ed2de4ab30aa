from __future__ import annotations

from .context import NetworkContext, NoPoolsError
from .inspect import PoolInspection, inspect_pools
from .run import run_network, run_prices

__all__ = [
    "NetworkContext",
    "NoPoolsError",
    "PoolInspection",
    "inspect_pools",
    "run_network",
    "run_prices",
]
