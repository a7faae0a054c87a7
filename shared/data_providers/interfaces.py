"""
Data Provider Interfaces.
Read contracts consumed by the portfolio analytics engine:
balances, trade history and market prices.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TradeSide(str, Enum):
    """Trade direction."""
    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(str, Enum):
    """Trade lifecycle status. Only COMPLETED trades affect the ledger."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Balance:
    """Recorded holding of one asset for one user."""
    asset: str
    quantity: Decimal
    user_id: Optional[str] = None


@dataclass(frozen=True)
class TradeEvent:
    """One immutable trade from the user's history."""
    asset: str
    side: TradeSide
    quantity: Decimal
    price: Decimal
    status: TradeStatus
    occurred_at: datetime
    user_id: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TradeStatus.COMPLETED


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] window; either bound may be open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


@dataclass(frozen=True)
class PriceQuote:
    """Price for a coin as returned by a PriceSource."""
    symbol: str
    price: Decimal
    fetched_at: datetime
    stale: bool = False


class BalanceReader(ABC):
    """Interface for the account ledger that owns balances."""

    @abstractmethod
    def get_balances(self, user_id: str) -> List[Balance]:
        """Get all recorded balances for a user."""
        pass


class TradeReader(ABC):
    """Interface for the trade history store."""

    @abstractmethod
    def get_trades(
        self, user_id: str, date_range: Optional[DateRange] = None
    ) -> List[TradeEvent]:
        """Get trades for a user ordered by occurred_at ascending."""
        pass


class PriceSource(ABC):
    """Interface for market price providers (CoinGecko, market cache table)."""

    @abstractmethod
    async def get_price(self, symbol: str) -> PriceQuote:
        """
        Get the current price for a coin symbol.

        Raises:
            PriceSourceError: if no quote can be produced
        """
        pass
