"""
Pydantic models for the Portfolio Analytics Service.
Response models; fields serialize to camelCase with model_dump(by_alias=True).
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnalyticsModel(BaseModel):
    """Immutable response model with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class AssetAllocation(AnalyticsModel):
    """One held asset in the portfolio summary."""
    symbol: str
    name: Optional[str] = None
    quantity: Decimal
    current_price: Optional[Decimal] = Field(None, description="None when no price could be obtained")
    value: Optional[Decimal] = None
    average_price: Optional[Decimal] = Field(None, description="None when the asset has no trade history")
    cost_basis: Decimal
    allocation_percentage: Decimal
    price_available: bool = True


class PortfolioSummaryResponse(AnalyticsModel):
    """Response model for get_portfolio_summary."""
    user_id: str
    total_value: Decimal
    assets: List[AssetAllocation]
    count: int
    timestamp: datetime
    prices_fetched_at: Optional[datetime] = None


class RiskMetadata(AnalyticsModel):
    largest_holding: Optional[str] = None
    largest_holding_percentage: Decimal
    herfindahl_index: Decimal
    effective_assets: Decimal


class PortfolioRiskResponse(AnalyticsModel):
    """Response model for get_portfolio_risk."""
    user_id: str
    concentration_risk: Decimal
    diversification_score: Decimal
    volatility_estimate: Decimal
    timestamp: datetime
    metadata: RiskMetadata


class AssetPerformanceItem(AnalyticsModel):
    symbol: str
    quantity: Decimal
    cost_basis: Decimal
    current_value: Optional[Decimal] = None
    total_gain: Decimal
    total_loss: Decimal
    roi: Decimal
    trade_count: int
    price_available: bool = True


class PortfolioPerformanceResponse(AnalyticsModel):
    """Response model for get_portfolio_performance."""
    user_id: str
    total_gain: Decimal
    total_loss: Decimal
    roi: Decimal
    total_cost_basis: Decimal
    total_current_value: Decimal
    net_gain: Decimal
    asset_performance: List[AssetPerformanceItem]
    timestamp: datetime
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PortfolioOverviewResponse(AnalyticsModel):
    """Summary, risk and performance computed from one snapshot."""
    user_id: str
    summary: PortfolioSummaryResponse
    risk: PortfolioRiskResponse
    performance: PortfolioPerformanceResponse
    timestamp: datetime


class CurrentBalanceItem(AnalyticsModel):
    asset: str
    amount: Decimal
    trades: int
    pnl: Decimal


class PortfolioStatsResponse(AnalyticsModel):
    """Response model for get_portfolio_stats."""
    user_id: str
    total_trades: int
    total_trade_volume: Decimal
    cumulative_pnl: Decimal = Field(..., alias="cumulativePnL")
    last_trade_date: Optional[datetime] = None
    current_balances: List[CurrentBalanceItem]
    timestamp: datetime


class ReconciliationItem(AnalyticsModel):
    symbol: str
    recorded_quantity: Decimal
    ledger_quantity: Decimal
    difference: Decimal
    has_trade_history: bool
    status: str  # reconciled | diverged | no_history


class LedgerWarningItem(AnalyticsModel):
    symbol: str
    kind: str
    message: str
    ledger_quantity: Decimal
    recorded_quantity: Optional[Decimal] = None
    occurred_at: Optional[datetime] = None


class ReconciliationReportResponse(AnalyticsModel):
    """Response model for get_reconciliation_report."""
    user_id: str
    reconciled: bool
    assets: List[ReconciliationItem]
    warnings: List[LedgerWarningItem]
    timestamp: datetime
