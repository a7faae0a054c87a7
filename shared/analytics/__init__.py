"""
CryptoLens Analytics Engine
Pure, testable portfolio metric calculations.
"""

from .portfolio.cost_basis import build_ledger, reconcile
from .portfolio.portfolio_metrics import (
    calculate_portfolio_value,
    calculate_allocation,
    calculate_average_price,
    build_valuation,
)
from .portfolio.risk_metrics import (
    calculate_herfindahl_index,
    calculate_concentration_risk,
    calculate_diversification_score,
    calculate_effective_assets,
    calculate_volatility_estimate,
    calculate_risk_profile,
)
from .portfolio.performance_metrics import calculate_roi, calculate_performance
from .portfolio.trade_statistics import calculate_trade_statistics

__all__ = [
    # Ledger
    "build_ledger",
    "reconcile",
    # Valuation
    "calculate_portfolio_value",
    "calculate_allocation",
    "calculate_average_price",
    "build_valuation",
    # Risk
    "calculate_herfindahl_index",
    "calculate_concentration_risk",
    "calculate_diversification_score",
    "calculate_effective_assets",
    "calculate_volatility_estimate",
    "calculate_risk_profile",
    # Performance
    "calculate_roi",
    "calculate_performance",
    # Statistics
    "calculate_trade_statistics",
]
