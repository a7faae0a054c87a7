"""
Shared configuration module for the portfolio analytics engine.
All services use this configuration module.
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "CryptoLens Portfolio Analytics"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Database (read-only access to balances, trades and market cache)
    DATABASE_URL: str = "sqlite:///./portfolio_analytics.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Price source - CRITICAL: Never hardcode API keys. Use environment variables only.
    COINGECKO_API_KEY: str = ""  # Optional: CoinGecko works without API key (free tier)
    COINGECKO_BASE_URL: str = "https://api.coingecko.com/api/v3"
    PRICE_SOURCE: str = "coingecko"  # coingecko | market_cache

    # Price cache
    PRICE_CACHE_TTL_SECONDS: int = Field(default=60, gt=0)
    PRICE_STALE_GRACE_SECONDS: int = Field(default=300, ge=0)
    PRICE_FETCH_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # Analytics
    DEFAULT_ASSET_VOLATILITY: float = 100.0  # Conservative fallback for unknown symbols
    RECONCILIATION_TOLERANCE: str = "0.00000001"

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator('PRICE_SOURCE')
    @classmethod
    def validate_price_source(cls, v: str) -> str:
        v = v.lower()
        if v not in ("coingecko", "market_cache"):
            raise ValueError("PRICE_SOURCE must be 'coingecko' or 'market_cache'")
        return v

    @field_validator('DEFAULT_ASSET_VOLATILITY')
    @classmethod
    def validate_default_volatility(cls, v: float) -> float:
        """Volatility scores live on a 0-100 scale."""
        if not 0 <= v <= 100:
            raise ValueError("DEFAULT_ASSET_VOLATILITY must be between 0 and 100")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True

    def validate_production_settings(self) -> None:
        """Validate settings for production environment."""
        if self.ENVIRONMENT == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if self.DATABASE_URL.startswith("sqlite"):
                raise ValueError("DATABASE_URL must not point to a local SQLite file in production")
            if self.PRICE_STALE_GRACE_SECONDS < self.PRICE_CACHE_TTL_SECONDS:
                raise ValueError("PRICE_STALE_GRACE_SECONDS should not be shorter than the cache TTL")


# Global settings instance
settings = Settings()

# Validate settings on import (only in production)
if settings.ENVIRONMENT == "production":
    try:
        settings.validate_production_settings()
    except ValueError as e:
        import sys
        import logging
        logger = logging.getLogger(__name__)
        logger.critical(f"Production configuration error: {e}", exc_info=True)
        print(f"CRITICAL: Production configuration error: {e}", file=sys.stderr)
        sys.exit(1)
