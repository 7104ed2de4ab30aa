"""Client for the GMX price service (``<chain>-api.gmxinfra.io``)."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import backoff
import requests

from ..constants import RETRYABLE_STATUS_CODES
from ..domain import MarketData, Pool, PriceQuote, TokenMeta
from ..logger import get_logger

logger = get_logger(__name__)


class PriceServiceError(Exception):
    """The price service answered with a payload we cannot use."""


def _is_permanent(exc: Exception) -> bool:
    return (
        isinstance(exc, requests.exceptions.HTTPError)
        and exc.response is not None
        and exc.response.status_code not in RETRYABLE_STATUS_CODES
    )


class PriceServiceClient:
    """Fetches pools, oracle tickers and token metadata for one network."""

    def __init__(self, api_url: str, *, timeout: float = 10.0, max_tries: int = 5):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.max_tries = max_tries

    async def _get_json(self, path: str) -> Any:
        url = f"{self.api_url}{path}"

        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self.max_tries,
            giveup=_is_permanent,
            jitter=backoff.full_jitter,
        )
        async def _get() -> requests.Response:
            logger.debug("Calling %s", url)
            response = await asyncio.to_thread(requests.get, url, timeout=self.timeout)
            response.raise_for_status()
            return response

        response = await _get()
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise PriceServiceError(f"Invalid JSON from {url}") from e

    async def fetch_pools(self) -> list[Pool]:
        data = await self._get_json("/markets")
        if not isinstance(data, dict) or not isinstance(data.get("markets"), list):
            raise PriceServiceError(f"Invalid /markets response structure: {data!r}")
        try:
            return [
                Pool(
                    pool_token=m["marketToken"],
                    index_token=m["indexToken"],
                    long_token=m["longToken"],
                    short_token=m["shortToken"],
                )
                for m in data["markets"]
            ]
        except (KeyError, TypeError) as e:
            raise PriceServiceError(f"Malformed market entry: {e}") from e

    async def fetch_quotes(self) -> dict[str, PriceQuote]:
        """Oracle tickers keyed by lowercase token address."""
        data = await self._get_json("/prices/tickers")
        if not isinstance(data, list):
            raise PriceServiceError(
                f"Invalid /prices/tickers response structure: {data!r}"
            )
        quotes: dict[str, PriceQuote] = {}
        for ticker in data:
            try:
                address = ticker["tokenAddress"]
                quote = PriceQuote(
                    token=address,
                    min_price=int(ticker["minPrice"]),
                    max_price=int(ticker["maxPrice"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise PriceServiceError(f"Malformed ticker entry: {ticker!r}") from e
            quotes[address.lower()] = quote
        return quotes

    async def fetch_tokens(self) -> dict[str, TokenMeta]:
        """Token metadata keyed by lowercase token address."""
        data = await self._get_json("/tokens")
        if not isinstance(data, dict) or not isinstance(data.get("tokens"), list):
            raise PriceServiceError(f"Invalid /tokens response structure: {data!r}")
        tokens: dict[str, TokenMeta] = {}
        for token in data["tokens"]:
            try:
                tokens[token["address"].lower()] = TokenMeta(
                    symbol=token["symbol"], decimals=int(token["decimals"])
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise PriceServiceError(f"Malformed token entry: {token!r}") from e
        return tokens

    async def fetch_market_data(self) -> MarketData:
        pools, quotes, tokens = await asyncio.gather(
            self.fetch_pools(), self.fetch_quotes(), self.fetch_tokens()
        )
        return MarketData(pools=pools, quotes=quotes, tokens=tokens)
