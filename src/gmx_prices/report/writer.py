"""JSON and CSV output under ``<output_dir>/v1``."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from ..domain import AllPrices, NetworkPrices
from ..logger import get_logger

logger = get_logger(__name__)

API_VERSION = "v1"
PAGE_ASSETS = ("index.html", "style.css")


def _quoted(text: str) -> str:
    """Always-quoted CSV field, as published for names."""
    return '"' + text.replace('"', '""') + '"'


def _csv_text(header: list[str], rows: list[list[object]]) -> str:
    lines = [",".join(header)]
    lines.extend(",".join(str(cell) for cell in row) for row in rows)
    return "\n".join(lines) + "\n"


def _network_rows(prices: NetworkPrices) -> list[list[object]]:
    rows: list[list[object]] = [
        ["gm", _quoted(gm.name), gm.address, gm.price, gm.pool_value]
        for gm in prices.gm
    ]
    rows.extend(
        ["glv", _quoted(glv.name), glv.address, glv.price, glv.tvl]
        for glv in prices.glv
    )
    return rows


def build_combined_csv(prices: AllPrices) -> str:
    rows: list[list[object]] = []
    for slug, network_prices in prices.networks.items():
        rows.extend([slug, *row] for row in _network_rows(network_prices))
    return _csv_text(["network", "type", "name", "address", "price", "poolValue"], rows)


def build_network_csv(prices: NetworkPrices) -> str:
    return _csv_text(
        ["type", "name", "address", "price", "poolValue"], _network_rows(prices)
    )


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


def _json_text(data: object) -> str:
    return json.dumps(data, indent=2) + "\n"


def write_all_output(
    prices: AllPrices, output_dir: Path, pages_dir: Path | None = None
) -> list[Path]:
    """Write combined and per-network JSON/CSV files.

    Args:
        prices: Results for every processed network.
        output_dir: Destination root; files go under ``<output_dir>/v1``.
        pages_dir: Optional directory holding landing page assets to copy.

    Returns:
        Paths of every file written.
    """
    root = output_dir / API_VERSION
    written: list[Path] = []

    combined_json = root / "prices.json"
    combined_csv = root / "prices.csv"
    _write(combined_json, _json_text(prices.to_dict()))
    _write(combined_csv, build_combined_csv(prices))
    written += [combined_json, combined_csv]

    for slug, network_prices in prices.networks.items():
        network_json = root / slug / "prices.json"
        network_csv = root / slug / "prices.csv"
        _write(
            network_json,
            _json_text({"updated": prices.updated, **network_prices.to_dict()}),
        )
        _write(network_csv, build_network_csv(network_prices))
        written += [network_json, network_csv]

    if pages_dir is not None:
        for name in PAGE_ASSETS:
            src = pages_dir / name
            if src.exists():
                dest = output_dir / name
                shutil.copyfile(src, dest)
                written.append(dest)

    logger.info("Output written to %s", output_dir)
    return written
