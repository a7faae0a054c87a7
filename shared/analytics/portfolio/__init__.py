"""
Portfolio Metrics Module
Pure functions for portfolio analytics.
"""

from .cost_basis import (
    AssetLedger,
    CostBasisLedger,
    LedgerWarning,
    LedgerWarningKind,
    Lot,
    LotQueue,
    build_ledger,
    reconcile,
)
from .portfolio_metrics import (
    AssetValuation,
    PortfolioHolding,
    PortfolioValuation,
    build_valuation,
    calculate_allocation,
    calculate_average_price,
    calculate_portfolio_value,
)
from .risk_metrics import RiskProfile, calculate_risk_profile
from .performance_metrics import (
    AssetPerformance,
    PerformancePosition,
    PortfolioPerformance,
    calculate_performance,
)
from .trade_statistics import AssetTradeStats, TradeStatistics, calculate_trade_statistics
from .volatility_table import StaticVolatilityTable, VolatilityProvider

__all__ = [
    "AssetLedger",
    "CostBasisLedger",
    "LedgerWarning",
    "LedgerWarningKind",
    "Lot",
    "LotQueue",
    "build_ledger",
    "reconcile",
    "AssetValuation",
    "PortfolioHolding",
    "PortfolioValuation",
    "build_valuation",
    "calculate_allocation",
    "calculate_average_price",
    "calculate_portfolio_value",
    "RiskProfile",
    "calculate_risk_profile",
    "AssetPerformance",
    "PerformancePosition",
    "PortfolioPerformance",
    "calculate_performance",
    "AssetTradeStats",
    "TradeStatistics",
    "calculate_trade_statistics",
    "StaticVolatilityTable",
    "VolatilityProvider",
]
