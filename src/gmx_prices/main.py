"""CLI entrypoint for gmx-prices."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any

import requests
import typer

from .clients import PriceServiceError
from .constants import Network
from .logger import setup_logging
from .settings import CONFIG_ENV_VAR, PricesSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Compute GM and GLV token prices and write them as JSON/CSV.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("gmx_prices")


@app.callback(invoke_without_command=True)
def prices(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [gmx_prices] table).",
        ),
    ] = None,
    networks: Annotated[
        list[Network] | None,
        typer.Option(
            "--network",
            "-n",
            help="Network to price; repeat for several (default: all).",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Destination root for output files."),
    ] = None,
    whitelist: Annotated[
        list[str] | None,
        typer.Option(
            "--whitelist",
            help="Only price GM pools whose index token has this symbol; repeatable.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    table: Annotated[
        bool,
        typer.Option("--table/--no-table", help="Print a summary table to stdout."),
    ] = False,
    inspect: Annotated[
        list[str] | None,
        typer.Option(
            "--inspect",
            help="Show detailed pricing for these GM token addresses instead of writing output.",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Price GM pools and GLV vaults on every configured network.

    Loads configuration, fetches price-service data, runs the on-chain reads
    and writes combined and per-network JSON/CSV files.
    """
    if config_path:
        os.environ[CONFIG_ENV_VAR] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if networks:
        init_kwargs["networks"] = networks
    if output_dir is not None:
        init_kwargs["output_dir"] = output_dir
    if whitelist:
        init_kwargs["index_token_whitelist"] = whitelist
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = PricesSettings(**init_kwargs)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    setup_logging(settings.log_level)
    logger = _build_logger()
    state = AppState(settings=settings, logger=logger)

    from .pipeline import NoPoolsError

    try:
        if inspect:
            _inspect(state, inspect)
        else:
            _run(state, table)
    except NoPoolsError as e:
        logger.error("%s", e)
        raise typer.Exit(code=1)
    except (PriceServiceError, requests.exceptions.RequestException) as e:
        logger.error("Price service request failed: %s", e)
        raise typer.Exit(code=1)


def _run(state: AppState, table: bool) -> None:
    from .pipeline import run_prices
    from .report import format_prices_table, write_all_output

    all_prices = asyncio.run(run_prices(state))
    s = state.settings
    write_all_output(all_prices, s.output_dir, s.pages_dir)

    if table:
        format_prices_table(all_prices)

    state.logger.info("Summary:")
    for slug, network_prices in all_prices.networks.items():
        state.logger.info(
            "  %s: %d GM, %d GLV", slug, len(network_prices.gm), len(network_prices.glv)
        )
    state.logger.info("  Updated: %s", all_prices.updated)


def _inspect(state: AppState, targets: list[str]) -> None:
    from .pipeline import inspect_pools
    from .report import format_inspection_table

    network = state.settings.network_configs[0]
    inspections = asyncio.run(inspect_pools(state, network, targets))
    format_inspection_table(network.name, inspections)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
