"""
Pytest configuration and shared fixtures.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Generator, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

import shared.models  # noqa: F401  (registers tables on Base.metadata)
from shared.cache_manager import PriceCache
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
from shared.database import Base
from shared.error_models import PriceSourceError, UserNotFoundError
from shared.service_factory import ServiceFactory
from services.portfolio_service.service import PortfolioAnalyticsService


# Test database URL (in-memory SQLite for unit tests)
TEST_DATABASE_URL = "sqlite:///:memory:"

USER_ID = "42"
FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


class FakePriceSource(PriceSource):
    """In-memory price source that records every call."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.prices: Dict[str, Decimal] = {}
        self.failing = set()
        self.delay = 0.0
        self.calls: List[str] = []

    def set_price(self, symbol: str, price):
        self.prices[symbol.upper()] = Decimal(str(price))

    async def get_price(self, symbol: str) -> PriceQuote:
        self.calls.append(symbol)
        if self.delay:
            await asyncio.sleep(self.delay)
        if symbol in self.failing:
            raise PriceSourceError(f"{symbol} source down")
        if symbol not in self.prices:
            raise PriceSourceError(f"No price for {symbol}")
        return PriceQuote(symbol=symbol, price=self.prices[symbol], fetched_at=self.clock())


class InMemoryStore:
    """Balances and trades for a handful of users."""

    def __init__(self):
        self.balances: Dict[str, List[Balance]] = {}
        self.trades: Dict[str, List[TradeEvent]] = {}
        self.error: Optional[Exception] = None

    def add_user(self, user_id: str = USER_ID):
        self.balances.setdefault(user_id, [])
        self.trades.setdefault(user_id, [])

    def add_balance(self, asset: str, quantity, user_id: str = USER_ID):
        self.add_user(user_id)
        self.balances[user_id].append(
            Balance(asset=asset, quantity=Decimal(str(quantity)), user_id=user_id)
        )

    def add_trade(
        self,
        asset: str,
        side: str,
        quantity,
        price,
        day: int = 1,
        status: TradeStatus = TradeStatus.COMPLETED,
        user_id: str = USER_ID,
    ):
        self.add_user(user_id)
        self.trades[user_id].append(TradeEvent(
            asset=asset,
            side=TradeSide(side),
            quantity=Decimal(str(quantity)),
            price=Decimal(str(price)),
            status=status,
            occurred_at=datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(days=day),
            user_id=user_id,
        ))

    def check(self, user_id: str):
        if self.error is not None:
            raise self.error
        if user_id not in self.balances:
            raise UserNotFoundError(f"User {user_id} not found", field="user_id")


class InMemoryBalanceReader(BalanceReader):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_balances(self, user_id: str) -> List[Balance]:
        self.store.check(user_id)
        return list(self.store.balances[user_id])


class InMemoryTradeReader(TradeReader):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_trades(self, user_id: str, date_range: Optional[DateRange] = None) -> List[TradeEvent]:
        self.store.check(user_id)
        trades = self.store.trades[user_id]
        if date_range is not None:
            trades = [t for t in trades if date_range.contains(t.occurred_at)]
        return sorted(trades, key=lambda t: t.occurred_at)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Create a test database session.
    Uses in-memory SQLite for fast unit tests.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def price_source(clock) -> FakePriceSource:
    return FakePriceSource(clock)


@pytest.fixture
def price_cache(price_source, clock) -> PriceCache:
    return PriceCache(
        price_source,
        ttl_seconds=60,
        stale_grace_seconds=300,
        fetch_timeout_seconds=0.2,
        clock=clock,
    )


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_user(USER_ID)
    return store


@pytest.fixture
def make_service(store, price_cache, clock):
    """Build an analytics service over the in-memory store with optional overrides."""
    def _make(**overrides) -> PortfolioAnalyticsService:
        kwargs = dict(
            balance_reader=InMemoryBalanceReader(store),
            trade_reader=InMemoryTradeReader(store),
            price_cache=price_cache,
            clock=clock,
        )
        kwargs.update(overrides)
        return PortfolioAnalyticsService(**kwargs)
    return _make


@pytest.fixture
def analytics_service(make_service) -> PortfolioAnalyticsService:
    return make_service()


@pytest.fixture(autouse=True)
def reset_service_factory():
    """Drop shared service instances between tests."""
    ServiceFactory.reset()
    yield
    ServiceFactory.reset()
