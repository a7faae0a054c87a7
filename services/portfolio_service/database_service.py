"""
Database service for the Portfolio Analytics Service.
SQLAlchemy-backed readers for balances, trade history and cached market prices.
All operations are read-only.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.data_providers.interfaces import (
    Balance,
    BalanceReader,
    DateRange,
    PriceQuote,
    PriceSource,
    TradeEvent,
    TradeReader,
    TradeSide,
    TradeStatus,
)
from shared.error_models import PriceSourceError, UserNotFoundError
from shared.models import MarketCache, Trade, User, UserBalance
from shared.validators import ensure_utc

logger = logging.getLogger(__name__)


def _ensure_user_exists(db: Session, user_id: str):
    stmt = select(User.id).where(User.id == user_id)
    if db.execute(stmt).scalar_one_or_none() is None:
        raise UserNotFoundError(f"User {user_id} not found", field="user_id")


class SqlBalanceReader(BalanceReader):
    """Reads recorded balances from the user_balances table."""

    def __init__(self, db: Session):
        self.db = db

    def get_balances(self, user_id: str) -> List[Balance]:
        _ensure_user_exists(self.db, user_id)
        stmt = (
            select(UserBalance)
            .where(UserBalance.user_id == user_id)
            .order_by(UserBalance.asset_symbol)
        )
        rows = self.db.execute(stmt).scalars().all()
        return [
            Balance(
                asset=row.asset_symbol.upper(),
                quantity=Decimal(str(row.quantity)),
                user_id=user_id,
            )
            for row in rows
        ]


class SqlTradeReader(TradeReader):
    """Reads trade history from the trades table, oldest first."""

    def __init__(self, db: Session):
        self.db = db

    def get_trades(
        self, user_id: str, date_range: Optional[DateRange] = None
    ) -> List[TradeEvent]:
        _ensure_user_exists(self.db, user_id)
        stmt = select(Trade).where(Trade.user_id == user_id)
        if date_range is not None:
            if date_range.start is not None:
                stmt = stmt.where(Trade.occurred_at >= date_range.start)
            if date_range.end is not None:
                stmt = stmt.where(Trade.occurred_at <= date_range.end)
        stmt = stmt.order_by(Trade.occurred_at, Trade.id)

        rows = self.db.execute(stmt).scalars().all()
        logger.debug(f"Loaded {len(rows)} trades for user {user_id}")
        events = []
        for row in rows:
            event = self._to_event(row)
            if event is not None:
                events.append(event)
        return events

    @staticmethod
    def _to_event(row: Trade) -> Optional[TradeEvent]:
        try:
            side = TradeSide((row.side or "").upper())
            status = TradeStatus((row.status or "").lower())
        except ValueError:
            logger.warning(
                f"Skipping trade {row.id} for user {row.user_id}: "
                f"unknown side {row.side!r} or status {row.status!r}"
            )
            return None
        return TradeEvent(
            asset=row.asset_symbol.upper(),
            side=side,
            quantity=Decimal(str(row.quantity)),
            price=Decimal(str(row.price)),
            status=status,
            occurred_at=ensure_utc(row.occurred_at),
            user_id=row.user_id,
        )


class MarketCachePriceSource(PriceSource):
    """
    Price source backed by the market_cache table that the market data
    pipeline keeps up to date. Selected with PRICE_SOURCE=market_cache as an
    alternative to calling CoinGecko directly.
    """

    def __init__(self, db: Session):
        self.db = db

    async def get_price(self, symbol: str) -> PriceQuote:
        symbol = symbol.upper()
        stmt = select(MarketCache).where(MarketCache.symbol == symbol)
        row = self.db.execute(stmt).scalar_one_or_none()
        if row is None or row.price is None:
            raise PriceSourceError(f"No cached market price for {symbol}")

        price = Decimal(str(row.price))
        if price <= 0:
            raise PriceSourceError(f"Cached market price for {symbol} is not positive: {price}")

        fetched_at = ensure_utc(row.updated_at) if row.updated_at else datetime.now(timezone.utc)
        return PriceQuote(symbol=symbol, price=price, fetched_at=fetched_at)
