"""
Main business logic service for the Portfolio Analytics Service.
Orchestrates the readers, the price cache and the analytics engine.

Every request builds one read-only snapshot (balances, FIFO ledger, price
quotes) and derives its views from it. Recorded balances are the source of
truth for holdings; the ledger supplies cost basis only.
"""
# Standard library imports
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

# Local application imports
from shared.analytics.portfolio import (
    CostBasisLedger,
    LedgerWarning,
    PerformancePosition,
    PortfolioHolding,
    StaticVolatilityTable,
    VolatilityProvider,
    build_ledger,
    build_valuation,
    calculate_performance,
    calculate_risk_profile,
    calculate_trade_statistics,
    reconcile,
)
from shared.cache_manager import PriceCache
from shared.config import settings
from shared.data_providers.interfaces import BalanceReader, DateRange, PriceQuote, TradeReader
from shared.data_providers.symbol_resolver import SymbolResolver
from shared.error_models import PortfolioAnalyticsError, UpstreamUnavailableError
from shared.validators import validate_date_range, validate_user_id
from .models import (
    AssetAllocation,
    AssetPerformanceItem,
    CurrentBalanceItem,
    LedgerWarningItem,
    PortfolioOverviewResponse,
    PortfolioPerformanceResponse,
    PortfolioRiskResponse,
    PortfolioStatsResponse,
    PortfolioSummaryResponse,
    ReconciliationItem,
    ReconciliationReportResponse,
    RiskMetadata,
)

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


@dataclass
class PortfolioSnapshot:
    """Balances, ledger and quotes for one user at one moment."""
    user_id: str
    balances: Dict[str, Decimal]
    ledger: CostBasisLedger
    quotes: Dict[str, Optional[PriceQuote]] = field(default_factory=dict)
    divergences: List[LedgerWarning] = field(default_factory=list)

    @property
    def held_symbols(self) -> List[str]:
        return sorted(s for s, q in self.balances.items() if q > 0)

    def price_of(self, symbol: str) -> Optional[Decimal]:
        quote = self.quotes.get(symbol)
        return quote.price if quote is not None else None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PortfolioAnalyticsService:
    """Computes valuation, risk, performance and statistics for one user at a time."""

    def __init__(
        self,
        balance_reader: BalanceReader,
        trade_reader: TradeReader,
        price_cache: PriceCache,
        volatility_provider: Optional[VolatilityProvider] = None,
        symbol_resolver: Optional[SymbolResolver] = None,
        reconciliation_tolerance: Optional[Decimal] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.balance_reader = balance_reader
        self.trade_reader = trade_reader
        self.price_cache = price_cache
        self.volatility_provider = volatility_provider or StaticVolatilityTable()
        self.symbol_resolver = symbol_resolver or SymbolResolver()
        self.reconciliation_tolerance = (
            Decimal(settings.RECONCILIATION_TOLERANCE)
            if reconciliation_tolerance is None else Decimal(reconciliation_tolerance)
        )
        self._clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get_portfolio_summary(self, user_id: Any) -> PortfolioSummaryResponse:
        """Value, allocation and average price per held asset."""
        user_id = validate_user_id(user_id)
        snapshot = await self._load_snapshot(user_id)
        return self._build_summary(snapshot, self._clock())

    async def get_portfolio_risk(self, user_id: Any) -> PortfolioRiskResponse:
        """Concentration, diversification and volatility estimate."""
        user_id = validate_user_id(user_id)
        snapshot = await self._load_snapshot(user_id)
        return self._build_risk(snapshot, self._clock())

    async def get_portfolio_performance(
        self,
        user_id: Any,
        start_date: Any = None,
        end_date: Any = None,
    ) -> PortfolioPerformanceResponse:
        """
        Unrealized gain/loss and ROI of the remaining lots.

        Trades before start_date still establish the lots held at the start
        of the window; trades after end_date are ignored.
        """
        user_id = validate_user_id(user_id)
        start, end = validate_date_range(start_date, end_date)
        snapshot = await self._load_snapshot(user_id, start_date=start, end_date=end)
        return self._build_performance(snapshot, self._clock())

    async def get_portfolio_overview(self, user_id: Any) -> PortfolioOverviewResponse:
        """Summary, risk and performance derived from a single snapshot."""
        user_id = validate_user_id(user_id)
        snapshot = await self._load_snapshot(user_id)
        now = self._clock()

        summary, risk, performance = await asyncio.gather(
            asyncio.to_thread(self._build_summary, snapshot, now),
            asyncio.to_thread(self._build_risk, snapshot, now),
            asyncio.to_thread(self._build_performance, snapshot, now),
        )
        return PortfolioOverviewResponse(
            user_id=user_id,
            summary=summary,
            risk=risk,
            performance=performance,
            timestamp=now,
        )

    async def get_portfolio_stats(self, user_id: Any) -> PortfolioStatsResponse:
        """Trade count, volume, realized P&L and per-asset balances."""
        user_id = validate_user_id(user_id)
        snapshot = await self._load_snapshot(user_id, with_prices=False)
        stats = calculate_trade_statistics(snapshot.ledger, snapshot.balances)

        return PortfolioStatsResponse(
            user_id=user_id,
            total_trades=stats.total_trades,
            total_trade_volume=stats.total_trade_volume,
            cumulative_pnl=stats.cumulative_pnl,
            last_trade_date=stats.last_trade_date,
            current_balances=[
                CurrentBalanceItem(asset=row.symbol, amount=row.amount, trades=row.trades, pnl=row.pnl)
                for row in stats.assets
            ],
            timestamp=self._clock(),
        )

    async def get_reconciliation_report(self, user_id: Any) -> ReconciliationReportResponse:
        """Ledger remaining quantity against recorded balance, per asset."""
        user_id = validate_user_id(user_id)
        snapshot = await self._load_snapshot(user_id, with_prices=False)
        ledger = snapshot.ledger

        symbols = set(snapshot.held_symbols) | set(ledger.assets)
        items = []
        for symbol in sorted(symbols):
            recorded = snapshot.balances.get(symbol, ZERO)
            asset = ledger.get(symbol)
            tracked = asset.remaining_quantity if asset else ZERO
            difference = recorded - tracked
            if asset is None:
                status = "no_history"
            elif abs(difference) <= self.reconciliation_tolerance:
                status = "reconciled"
            else:
                status = "diverged"
            items.append(ReconciliationItem(
                symbol=symbol,
                recorded_quantity=recorded,
                ledger_quantity=tracked,
                difference=difference,
                has_trade_history=asset is not None,
                status=status,
            ))

        warnings = ledger.warnings + snapshot.divergences
        return ReconciliationReportResponse(
            user_id=user_id,
            reconciled=not warnings,
            assets=items,
            warnings=[
                LedgerWarningItem(
                    symbol=w.symbol,
                    kind=w.kind.value,
                    message=w.message,
                    ledger_quantity=w.ledger_quantity,
                    recorded_quantity=w.recorded_quantity,
                    occurred_at=w.occurred_at,
                )
                for w in warnings
            ],
            timestamp=self._clock(),
        )

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    async def _load_snapshot(
        self,
        user_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        with_prices: bool = True,
    ) -> PortfolioSnapshot:
        raw_balances = self._read(
            "balance", lambda: self.balance_reader.get_balances(user_id), user_id
        )
        # Lots held at window start depend on earlier trades, so only the end is bounded
        trade_range = DateRange(end=end_date) if end_date is not None else None
        trades = self._read(
            "trade", lambda: self.trade_reader.get_trades(user_id, trade_range), user_id
        )

        balances: Dict[str, Decimal] = {}
        for balance in raw_balances:
            symbol = balance.asset.upper()
            balances[symbol] = balances.get(symbol, ZERO) + balance.quantity

        ledger = build_ledger(trades, start_date=start_date, end_date=end_date)
        for warning in ledger.warnings:
            logger.warning(f"Ledger inconsistency for user {user_id}: {warning.message}")

        divergences: List[LedgerWarning] = []
        # A windowed ledger legitimately differs from today's balances
        if end_date is None:
            divergences = reconcile(ledger, balances, self.reconciliation_tolerance)
            for warning in divergences:
                logger.warning(f"Balance divergence for user {user_id}: {warning.message}")

        snapshot = PortfolioSnapshot(
            user_id=user_id,
            balances=balances,
            ledger=ledger,
            divergences=divergences,
        )
        if with_prices and snapshot.held_symbols:
            snapshot.quotes = await self.price_cache.get_prices(snapshot.held_symbols)
        return snapshot

    def _read(self, label: str, reader: Callable[[], Any], user_id: str) -> Any:
        try:
            return reader()
        except PortfolioAnalyticsError:
            raise
        except Exception as e:
            logger.error(f"{label.capitalize()} reader failed for user {user_id}: {e}", exc_info=True)
            raise UpstreamUnavailableError(
                f"{label.capitalize()} data is unavailable",
                detail=str(e),
                metadata={"user_id": user_id, "reader": label},
            ) from e

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _holdings(self, snapshot: PortfolioSnapshot) -> List[PortfolioHolding]:
        holdings = []
        for symbol in snapshot.held_symbols:
            asset = snapshot.ledger.get(symbol)
            holdings.append(PortfolioHolding(
                symbol=symbol,
                amount=snapshot.balances[symbol],
                current_price=snapshot.price_of(symbol),
                cost_basis=asset.total_cost_basis if asset else ZERO,
                ledger_quantity=asset.remaining_quantity if asset else ZERO,
                has_history=asset is not None,
                name=self.symbol_resolver.get_name(symbol),
            ))
        return holdings

    def _build_summary(self, snapshot: PortfolioSnapshot, now: datetime) -> PortfolioSummaryResponse:
        valuation = build_valuation(self._holdings(snapshot))

        fetched = [
            snapshot.quotes[s].fetched_at
            for s in snapshot.held_symbols
            if snapshot.quotes.get(s) is not None
        ]

        return PortfolioSummaryResponse(
            user_id=snapshot.user_id,
            total_value=valuation.total_value,
            assets=[
                AssetAllocation(
                    symbol=row.symbol,
                    name=row.name,
                    quantity=row.quantity,
                    current_price=row.current_price,
                    value=row.value,
                    average_price=row.average_price,
                    cost_basis=row.cost_basis,
                    allocation_percentage=row.allocation_percentage,
                    price_available=row.price_available,
                )
                for row in valuation.assets
            ],
            count=valuation.count,
            timestamp=now,
            prices_fetched_at=min(fetched) if fetched else None,
        )

    def _build_risk(self, snapshot: PortfolioSnapshot, now: datetime) -> PortfolioRiskResponse:
        profile = calculate_risk_profile(self._holdings(snapshot), self.volatility_provider)
        return PortfolioRiskResponse(
            user_id=snapshot.user_id,
            concentration_risk=profile.concentration_risk,
            diversification_score=profile.diversification_score,
            volatility_estimate=profile.volatility_estimate,
            timestamp=now,
            metadata=RiskMetadata(
                largest_holding=profile.largest_holding,
                largest_holding_percentage=profile.largest_holding_percentage,
                herfindahl_index=profile.herfindahl_index,
                effective_assets=profile.effective_assets,
            ),
        )

    def _build_performance(
        self, snapshot: PortfolioSnapshot, now: datetime
    ) -> PortfolioPerformanceResponse:
        positions = []
        for symbol in snapshot.held_symbols:
            asset = snapshot.ledger.get(symbol)
            positions.append(PerformancePosition(
                symbol=symbol,
                quantity=asset.remaining_quantity if asset else ZERO,
                cost_basis=asset.total_cost_basis if asset else ZERO,
                current_price=snapshot.price_of(symbol),
                trade_count=asset.window_trade_count if asset else 0,
            ))
        performance = calculate_performance(positions)

        return PortfolioPerformanceResponse(
            user_id=snapshot.user_id,
            total_gain=performance.total_gain,
            total_loss=performance.total_loss,
            roi=performance.roi,
            total_cost_basis=performance.total_cost_basis,
            total_current_value=performance.total_current_value,
            net_gain=performance.net_gain,
            asset_performance=[
                AssetPerformanceItem(
                    symbol=row.symbol,
                    quantity=row.quantity,
                    cost_basis=row.cost_basis,
                    current_value=row.current_value,
                    total_gain=row.total_gain,
                    total_loss=row.total_loss,
                    roi=row.roi,
                    trade_count=row.trade_count,
                    price_available=row.price_available,
                )
                for row in performance.assets
            ],
            timestamp=now,
            start_date=snapshot.ledger.start_date,
            end_date=snapshot.ledger.end_date,
        )
