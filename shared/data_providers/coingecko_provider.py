"""
CoinGecko Price Source.
Implements the PriceSource interface over the CoinGecko simple-price endpoint.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from shared.config import settings
from shared.error_models import PriceSourceError
from .interfaces import PriceSource, PriceQuote
from .symbol_resolver import SymbolResolver

logger = logging.getLogger(__name__)


class CoinGeckoPriceSource(PriceSource):
    """CoinGecko implementation of PriceSource."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        symbol_resolver: Optional[SymbolResolver] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.COINGECKO_BASE_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(
            timeout=timeout or settings.PRICE_FETCH_TIMEOUT_SECONDS
        )
        self.api_key = api_key if api_key is not None else (settings.COINGECKO_API_KEY or '')
        self.symbol_resolver = symbol_resolver or SymbolResolver()

    async def get_price(self, symbol: str) -> PriceQuote:
        """Get the USD price for a coin symbol."""
        symbol = symbol.upper()
        gecko_id = self.symbol_resolver.get_gecko_id(symbol)

        url = f"{self.base_url}/simple/price"
        params = {
            "ids": gecko_id,
            "vs_currencies": "usd",
        }
        if self.api_key:
            params["x_cg_demo_api_key"] = self.api_key

        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"CoinGecko request failed for {symbol}: {e}")
            raise PriceSourceError(
                f"CoinGecko request failed for {symbol}", detail=str(e)
            ) from e
        except ValueError as e:
            raise PriceSourceError(
                f"CoinGecko returned invalid JSON for {symbol}", detail=str(e)
            ) from e

        coin_data = data.get(gecko_id) if isinstance(data, dict) else None
        if not coin_data or coin_data.get("usd") is None:
            raise PriceSourceError(f"CoinGecko has no USD price for {symbol}")

        try:
            price = Decimal(str(coin_data["usd"]))
        except (InvalidOperation, TypeError) as e:
            raise PriceSourceError(
                f"CoinGecko returned a malformed price for {symbol}", detail=str(e)
            ) from e

        return PriceQuote(
            symbol=symbol,
            price=price,
            fetched_at=datetime.now(timezone.utc)
        )

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
