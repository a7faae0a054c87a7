"""
Shared database models read by the portfolio analytics adapters.
"""
import uuid

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Users table model."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserBalance(Base):
    """Recorded balance per user and asset; source of truth for current holdings."""
    __tablename__ = "user_balances"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    asset_symbol = Column(String(10), nullable=False)
    quantity = Column(Numeric(28, 10), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_user_balances_user_id", "user_id"),
    )


class Trade(Base):
    """Trade history table model."""
    __tablename__ = "trades"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    asset_symbol = Column(String(10), nullable=False)
    side = Column(String(4), nullable=False)  # BUY or SELL
    quantity = Column(Numeric(28, 10), nullable=False)
    price = Column(Numeric(28, 10), nullable=False)
    status = Column(String(16), nullable=False, default="completed")
    occurred_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_trades_user_occurred", "user_id", "occurred_at"),
    )


class MarketCache(Base):
    """Market cache table model."""
    __tablename__ = "market_cache"

    id = Column(String(36), primary_key=True, default=_uuid)
    symbol = Column(String(10), unique=True, nullable=False)
    price = Column(Numeric(20, 8), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
