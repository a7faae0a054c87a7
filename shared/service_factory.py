"""
Service factory for dependency injection.
Provides centralized service instantiation.

The price cache is process-wide so concurrent requests share quotes and
in-flight refreshes; readers are bound to the caller's database session.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from .cache_manager import PriceCache
from .config import settings
from .data_providers.interfaces import PriceSource

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = None):
    """Configure root logging from LOG_LEVEL."""
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


class ServiceFactory:
    """Factory for creating service instances."""

    # Shared instances
    _price_source: Optional[PriceSource] = None
    _price_cache: Optional[PriceCache] = None

    @classmethod
    def get_price_source(cls) -> PriceSource:
        """Get or create the CoinGecko price source."""
        if cls._price_source is None:
            from .data_providers.coingecko_provider import CoinGeckoPriceSource
            cls._price_source = CoinGeckoPriceSource()
        return cls._price_source

    @classmethod
    def get_price_cache(cls) -> PriceCache:
        """Get or create the process-wide price cache."""
        if cls._price_cache is None:
            cls._price_cache = PriceCache(cls.get_price_source())
            logger.info(
                f"Price cache created (ttl={settings.PRICE_CACHE_TTL_SECONDS}s, "
                f"grace={settings.PRICE_STALE_GRACE_SECONDS}s)"
            )
        return cls._price_cache

    @classmethod
    def get_portfolio_service(cls, db: Session, price_cache: Optional[PriceCache] = None):
        """
        Create a portfolio analytics service bound to a database session.

        With PRICE_SOURCE=market_cache, quotes come from the market_cache table
        through a cache bound to this session instead of the shared CoinGecko cache.
        """
        from services.portfolio_service.database_service import (
            MarketCachePriceSource,
            SqlBalanceReader,
            SqlTradeReader,
        )
        from services.portfolio_service.service import PortfolioAnalyticsService

        if price_cache is None:
            if settings.PRICE_SOURCE == "market_cache":
                price_cache = PriceCache(MarketCachePriceSource(db))
            else:
                price_cache = cls.get_price_cache()

        return PortfolioAnalyticsService(
            balance_reader=SqlBalanceReader(db),
            trade_reader=SqlTradeReader(db),
            price_cache=price_cache,
        )

    @classmethod
    def reset(cls):
        """Reset all service instances (useful for testing)."""
        cls._price_source = None
        cls._price_cache = None


def get_portfolio_service(db: Session):
    """Dependency function returning a portfolio analytics service."""
    return ServiceFactory.get_portfolio_service(db)
