from __future__ import annotations

from .formatter import format_inspection_table, format_prices_table
from .writer import write_all_output

__all__ = [
    "format_inspection_table",
    "format_prices_table",
    "write_all_output",
]
