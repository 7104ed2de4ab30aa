"""Rich console tables for price results."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..domain import AllPrices
from ..pipeline.inspect import PoolInspection


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:6]}...{address[-4:]}"


def format_usd(value: float | None) -> str:
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.4f}"


def format_prices_table(prices: AllPrices, console: Console | None = None) -> None:
    """Print one table per network with GM rows then GLV rows."""
    console = console or Console()
    for slug, network_prices in prices.networks.items():
        table = Table(
            title=f"{slug} ({len(network_prices.gm)} GM, {len(network_prices.glv)} GLV)",
            title_style="bold cyan",
        )
        table.add_column("Type", style="dim")
        table.add_column("Name")
        table.add_column("Address", style="dim")
        table.add_column("Price", justify="right", style="green")
        table.add_column("Pool value / TVL", justify="right")

        for gm in network_prices.gm:
            table.add_row(
                "GM",
                gm.name,
                _truncate_address(gm.address),
                format_usd(gm.price),
                format_usd(gm.pool_value),
            )
        for glv in network_prices.glv:
            table.add_row(
                "GLV",
                glv.name,
                _truncate_address(glv.address),
                format_usd(glv.price),
                format_usd(glv.tvl),
            )
        console.print(table)
    console.print(Text(f"Updated: {prices.updated}", style="dim"))


def format_inspection_table(
    network_name: str,
    inspections: list[PoolInspection],
    console: Console | None = None,
) -> None:
    console = console or Console()
    table = Table(title=f"GM Token Prices ({network_name})", title_style="bold cyan")
    table.add_column("Market")
    table.add_column("GM Token", style="dim")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Pool", justify="right")
    table.add_column("Underlying")

    for item in inspections:
        underlying = "\n".join(
            f"{row.role.capitalize()}: {row.symbol} {format_usd(row.price)}"
            for row in item.underlying
        )
        if item.result is None:
            reason = f"ERROR: {item.error}" if item.error else "ERROR"
            price = Text(reason, style="bold red")
            pool_value = Text("-")
        else:
            price = Text(format_usd(item.result.price))
            pool_value = Text(format_usd(item.result.pool_value))
        table.add_row(
            item.name,
            _truncate_address(item.pool.pool_token),
            price,
            pool_value,
            underlying,
        )
    console.print(table)
