"""
Unit tests for the SQLAlchemy readers.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from shared.cache_manager import PriceCache
from shared.data_providers.interfaces import DateRange, TradeSide, TradeStatus
from shared.error_models import PriceSourceError, UserNotFoundError
from shared.models import MarketCache, Trade, User, UserBalance
from shared.service_factory import ServiceFactory
from services.portfolio_service.database_service import (
    MarketCachePriceSource,
    SqlBalanceReader,
    SqlTradeReader,
)

USER_ID = "5d0f6f0e-8a7e-4c1e-9d37-3f7a4c0e2b11"


def _seed(db: Session):
    db.add(User(id=USER_ID, email="holder@example.com"))
    db.add_all([
        UserBalance(user_id=USER_ID, asset_symbol="BTC", quantity=Decimal("1.5")),
        UserBalance(user_id=USER_ID, asset_symbol="eth", quantity=Decimal("10")),
    ])
    db.add_all([
        Trade(
            user_id=USER_ID, asset_symbol="ETH", side="BUY", quantity=Decimal("10"),
            price=Decimal("2000"), status="completed",
            occurred_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
        ),
        Trade(
            user_id=USER_ID, asset_symbol="BTC", side="BUY", quantity=Decimal("2"),
            price=Decimal("30000"), status="completed",
            occurred_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        ),
        Trade(
            user_id=USER_ID, asset_symbol="BTC", side="sell", quantity=Decimal("0.5"),
            price=Decimal("40000"), status="pending",
            occurred_at=datetime(2025, 2, 1, tzinfo=timezone.utc),
        ),
    ])
    db.commit()


@pytest.mark.unit
class TestSqlReaders:
    """Balance and trade readers over the ORM models."""

    def test_get_balances(self, db_session: Session):
        _seed(db_session)

        balances = SqlBalanceReader(db_session).get_balances(USER_ID)

        assert [(b.asset, b.quantity) for b in balances] == [
            ("BTC", Decimal("1.5")),
            ("ETH", Decimal("10")),
        ]

    def test_unknown_user(self, db_session: Session):
        _seed(db_session)

        with pytest.raises(UserNotFoundError):
            SqlBalanceReader(db_session).get_balances("00000000-0000-0000-0000-000000000000")
        with pytest.raises(UserNotFoundError):
            SqlTradeReader(db_session).get_trades("7")

    def test_trades_are_ordered_and_typed(self, db_session: Session):
        _seed(db_session)

        trades = SqlTradeReader(db_session).get_trades(USER_ID)

        assert [t.occurred_at.month for t in trades] == [1, 2, 3]
        assert trades[0].side == TradeSide.BUY
        assert trades[1].side == TradeSide.SELL
        assert trades[1].status == TradeStatus.PENDING
        assert trades[0].occurred_at.tzinfo is not None
        assert trades[0].quantity == Decimal("2")

    def test_trades_filtered_by_date_range(self, db_session: Session):
        _seed(db_session)

        trades = SqlTradeReader(db_session).get_trades(
            USER_ID, DateRange(end=datetime(2025, 2, 15, tzinfo=timezone.utc))
        )

        assert [t.asset for t in trades] == ["BTC", "BTC"]

    def test_unknown_status_or_side_rows_are_skipped(self, db_session: Session, caplog):
        _seed(db_session)
        db_session.add_all([
            Trade(
                user_id=USER_ID, asset_symbol="BTC", side="SELL", quantity=Decimal("1"),
                price=Decimal("50000"), status="expired",
                occurred_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
            ),
            Trade(
                user_id=USER_ID, asset_symbol="ETH", side="TRANSFER", quantity=Decimal("1"),
                price=Decimal("0"), status="completed",
                occurred_at=datetime(2025, 4, 2, tzinfo=timezone.utc),
            ),
        ])
        db_session.commit()

        with caplog.at_level(logging.WARNING):
            trades = SqlTradeReader(db_session).get_trades(USER_ID)

        assert [t.occurred_at.month for t in trades] == [1, 2, 3]
        assert "expired" in caplog.text
        assert "TRANSFER" in caplog.text


@pytest.mark.unit
@pytest.mark.asyncio
class TestMarketCachePriceSource:

    async def test_returns_cached_price(self, db_session: Session):
        db_session.add(MarketCache(
            symbol="BTC",
            price=Decimal("45000"),
            updated_at=datetime(2026, 1, 15, 11, 59, tzinfo=timezone.utc),
        ))
        db_session.commit()

        quote = await MarketCachePriceSource(db_session).get_price("btc")

        assert quote.symbol == "BTC"
        assert quote.price == Decimal("45000")
        assert quote.fetched_at == datetime(2026, 1, 15, 11, 59, tzinfo=timezone.utc)

    async def test_missing_symbol_raises(self, db_session: Session):
        with pytest.raises(PriceSourceError):
            await MarketCachePriceSource(db_session).get_price("DOGE")

    async def test_non_positive_price_raises(self, db_session: Session):
        db_session.add(MarketCache(symbol="DEAD", price=Decimal("0")))
        db_session.commit()

        with pytest.raises(PriceSourceError):
            await MarketCachePriceSource(db_session).get_price("DEAD")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_service_factory_wires_sql_readers(db_session: Session):
    _seed(db_session)
    db_session.add_all([
        MarketCache(symbol="BTC", price=Decimal("45000")),
        MarketCache(symbol="ETH", price=Decimal("3000")),
    ])
    db_session.commit()

    cache = PriceCache(MarketCachePriceSource(db_session))
    service = ServiceFactory.get_portfolio_service(db_session, price_cache=cache)
    summary = await service.get_portfolio_summary(USER_ID)

    assert summary.total_value == Decimal("97500")
    assert [a.symbol for a in summary.assets] == ["BTC", "ETH"]
    assert summary.assets[1].average_price == Decimal("2000")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_summary_survives_unrecognised_trade_status(db_session: Session):
    db_session.add(User(id=USER_ID, email="holder@example.com"))
    db_session.add(UserBalance(user_id=USER_ID, asset_symbol="BTC", quantity=Decimal("1")))
    db_session.add_all([
        Trade(
            user_id=USER_ID, asset_symbol="BTC", side="BUY", quantity=Decimal("1"),
            price=Decimal("30000"), status="completed",
            occurred_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        ),
        Trade(
            user_id=USER_ID, asset_symbol="BTC", side="SELL", quantity=Decimal("1"),
            price=Decimal("40000"), status="expired",
            occurred_at=datetime(2025, 1, 2, tzinfo=timezone.utc),
        ),
        MarketCache(symbol="BTC", price=Decimal("45000")),
    ])
    db_session.commit()

    cache = PriceCache(MarketCachePriceSource(db_session))
    service = ServiceFactory.get_portfolio_service(db_session, price_cache=cache)
    summary = await service.get_portfolio_summary(USER_ID)

    assert summary.total_value == Decimal("45000")
    assert summary.assets[0].average_price == Decimal("30000")
