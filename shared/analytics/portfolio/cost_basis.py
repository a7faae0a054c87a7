"""
Cost-Basis Ledger Builder.

Replays a user's trade history per asset into FIFO lots:
- BUY appends a lot {quantity, unit_cost}
- SELL consumes the oldest lots first; a sell larger than the tracked lot
  quantity is clamped at zero and recorded as an oversell warning
- remaining_quantity = sum(lot.quantity)
- total_cost_basis = sum(lot.quantity * lot.unit_cost)

Recorded balances stay the source of truth for current holdings; the ledger
only supplies cost basis. reconcile() reports where the two disagree.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from shared.data_providers.interfaces import TradeEvent, TradeSide
from shared.validators import ensure_utc

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


@dataclass
class Lot:
    """Quantity bought in one BUY, with its own unit cost."""
    quantity: Decimal
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_cost


class LotQueue:
    """
    FIFO queue of lots backed by a list and an advancing head index.
    Consumed lots are compacted away once they make up half the list.
    """

    _COMPACT_THRESHOLD = 32

    def __init__(self):
        self._lots: List[Lot] = []
        self._head = 0

    def append(self, lot: Lot):
        self._lots.append(lot)

    def consume(self, quantity: Decimal) -> Tuple[Decimal, Decimal]:
        """
        Consume up to quantity from the oldest lots.

        Returns:
            Tuple of (quantity actually consumed, cost of the consumed units)
        """
        remaining = quantity
        cost = ZERO
        while remaining > 0 and self._head < len(self._lots):
            lot = self._lots[self._head]
            take = min(lot.quantity, remaining)
            cost += take * lot.unit_cost
            lot.quantity -= take
            remaining -= take
            if lot.quantity <= 0:
                self._head += 1

        if self._head >= self._COMPACT_THRESHOLD and self._head * 2 >= len(self._lots):
            self._lots = self._lots[self._head:]
            self._head = 0

        return quantity - remaining, cost

    def __iter__(self) -> Iterator[Lot]:
        return iter(self._lots[self._head:])

    def __len__(self) -> int:
        return len(self._lots) - self._head

    @property
    def total_quantity(self) -> Decimal:
        return sum((lot.quantity for lot in self), ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((lot.cost for lot in self), ZERO)


class LedgerWarningKind(str, Enum):
    """Kinds of data-integrity signals the ledger can raise."""
    OVERSELL = "oversell"
    BALANCE_DIVERGENCE = "balance_divergence"


@dataclass(frozen=True)
class LedgerWarning:
    """Non-fatal inconsistency found while replaying or reconciling."""
    symbol: str
    kind: LedgerWarningKind
    message: str
    ledger_quantity: Decimal
    recorded_quantity: Optional[Decimal] = None
    occurred_at: Optional[datetime] = None


@dataclass
class AssetLedger:
    """Replay state for one asset."""
    symbol: str
    lots: LotQueue = field(default_factory=LotQueue)
    trade_count: int = 0
    window_trade_count: int = 0
    trade_volume: Decimal = ZERO
    realized_pnl: Decimal = ZERO
    oversold_quantity: Decimal = ZERO
    last_trade_at: Optional[datetime] = None

    @property
    def remaining_quantity(self) -> Decimal:
        return self.lots.total_quantity

    @property
    def total_cost_basis(self) -> Decimal:
        return self.lots.total_cost

    @property
    def average_cost(self) -> Decimal:
        """Cost per remaining unit, 0 when nothing remains."""
        remaining = self.remaining_quantity
        if remaining <= 0:
            return ZERO
        return self.total_cost_basis / remaining


@dataclass
class CostBasisLedger:
    """Result of replaying one user's trades."""
    assets: Dict[str, AssetLedger] = field(default_factory=dict)
    warnings: List[LedgerWarning] = field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def get(self, symbol: str) -> Optional[AssetLedger]:
        return self.assets.get(symbol.upper())

    def has_history(self, symbol: str) -> bool:
        return symbol.upper() in self.assets


def _is_replayable(trade: TradeEvent) -> bool:
    if not trade.is_completed:
        return False
    if trade.quantity is None or trade.quantity <= 0:
        logger.warning(
            f"Skipping {trade.side} {trade.asset} trade at {trade.occurred_at}: "
            f"non-positive quantity {trade.quantity}"
        )
        return False
    if trade.price is None or trade.price < 0:
        logger.warning(
            f"Skipping {trade.side} {trade.asset} trade at {trade.occurred_at}: "
            f"negative price {trade.price}"
        )
        return False
    return True


def build_ledger(
    trades: Iterable[TradeEvent],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> CostBasisLedger:
    """
    Replay completed trades into per-asset FIFO lots.

    Trades after end_date are excluded. Trades before start_date still build
    the lots held at the start of the window; start_date only scopes
    window_trade_count.

    Args:
        trades: Trade events for one user (any order; sorted stably by occurred_at)
        start_date: Optional window start
        end_date: Optional window end (inclusive)

    Returns:
        CostBasisLedger with per-asset state and oversell warnings
    """
    start = ensure_utc(start_date)
    end = ensure_utc(end_date)
    ledger = CostBasisLedger(start_date=start, end_date=end)

    replay: List[Tuple[datetime, TradeEvent]] = []
    for trade in trades:
        if not _is_replayable(trade):
            continue
        occurred_at = ensure_utc(trade.occurred_at)
        if end is not None and occurred_at > end:
            continue
        replay.append((occurred_at, trade))
    replay.sort(key=lambda item: item[0])

    for occurred_at, trade in replay:
        symbol = trade.asset.upper()
        asset = ledger.assets.get(symbol)
        if asset is None:
            asset = AssetLedger(symbol=symbol)
            ledger.assets[symbol] = asset

        asset.trade_count += 1
        if start is None or occurred_at >= start:
            asset.window_trade_count += 1
        asset.trade_volume += trade.quantity * trade.price
        asset.last_trade_at = occurred_at

        if trade.side == TradeSide.BUY:
            asset.lots.append(Lot(quantity=trade.quantity, unit_cost=trade.price))
            continue

        consumed, consumed_cost = asset.lots.consume(trade.quantity)
        asset.realized_pnl += consumed * trade.price - consumed_cost
        shortfall = trade.quantity - consumed
        if shortfall > 0:
            asset.oversold_quantity += shortfall
            warning = LedgerWarning(
                symbol=symbol,
                kind=LedgerWarningKind.OVERSELL,
                message=(
                    f"SELL of {trade.quantity} {symbol} at {occurred_at.isoformat()} "
                    f"exceeds tracked lots by {shortfall}; clamped to zero"
                ),
                ledger_quantity=asset.remaining_quantity,
                occurred_at=occurred_at,
            )
            ledger.warnings.append(warning)

    return ledger


def reconcile(
    ledger: CostBasisLedger,
    balances: Mapping[str, Decimal],
    tolerance: Decimal = Decimal("0.00000001"),
) -> List[LedgerWarning]:
    """
    Compare ledger remaining quantity with recorded balances.

    Every asset that has a positive balance or any trade history is checked;
    a difference above tolerance yields a BALANCE_DIVERGENCE warning.
    Results are ordered by symbol.
    """
    warnings = []
    symbols = {s.upper() for s, q in balances.items() if q > 0} | set(ledger.assets)
    for symbol in sorted(symbols):
        recorded = balances.get(symbol, ZERO)
        asset = ledger.get(symbol)
        tracked = asset.remaining_quantity if asset else ZERO
        if abs(recorded - tracked) <= tolerance:
            continue
        if asset is None:
            message = f"{symbol} balance {recorded} has no trade history"
        else:
            message = f"{symbol} ledger tracks {tracked} but recorded balance is {recorded}"
        warnings.append(LedgerWarning(
            symbol=symbol,
            kind=LedgerWarningKind.BALANCE_DIVERGENCE,
            message=message,
            ledger_quantity=tracked,
            recorded_quantity=recorded,
        ))
    return warnings
