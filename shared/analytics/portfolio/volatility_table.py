"""
Expected volatility per asset.
A static lookup standing in for a realized-volatility estimator; anything
that implements VolatilityProvider can replace it.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, Mapping, Optional, Union

from shared.config import settings

Number = Union[Decimal, int, float, str]


class VolatilityProvider(ABC):
    """symbol -> expected volatility on a 0-100 scale."""

    @abstractmethod
    def get_volatility(self, symbol: str) -> Decimal:
        pass


class StaticVolatilityTable(VolatilityProvider):
    """Fixed table of expected annualized volatility (%) per symbol."""

    DEFAULT_TABLE: Dict[str, str] = {
        # Stablecoins
        "USDT": "1",
        "USDC": "1",
        "DAI": "2",
        # Majors
        "BTC": "60",
        "ETH": "75",
        "BNB": "70",
        "XRP": "85",
        "LTC": "80",
        # Large caps
        "SOL": "90",
        "ADA": "85",
        "DOT": "90",
        "LINK": "90",
        "AVAX": "95",
        "MATIC": "95",
        "TRX": "70",
        "DOGE": "100",
    }

    def __init__(
        self,
        table: Optional[Mapping[str, Number]] = None,
        default: Optional[Number] = None,
    ):
        source = self.DEFAULT_TABLE if table is None else table
        self._table = {
            symbol.upper(): self._bounded(Decimal(str(value)))
            for symbol, value in source.items()
        }
        fallback = settings.DEFAULT_ASSET_VOLATILITY if default is None else default
        self._default = self._bounded(Decimal(str(fallback)))

    @staticmethod
    def _bounded(value: Decimal) -> Decimal:
        return max(Decimal(0), min(value, Decimal(100)))

    @property
    def default(self) -> Decimal:
        return self._default

    def get_volatility(self, symbol: str) -> Decimal:
        return self._table.get(symbol.upper(), self._default)
