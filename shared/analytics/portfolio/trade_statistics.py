"""
Trade statistics over a user's full trade history.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Mapping, Optional

from .cost_basis import CostBasisLedger

ZERO = Decimal(0)


@dataclass(frozen=True)
class AssetTradeStats:
    symbol: str
    amount: Decimal  # Recorded balance
    trades: int
    pnl: Decimal  # Realized FIFO P&L


@dataclass(frozen=True)
class TradeStatistics:
    total_trades: int
    total_trade_volume: Decimal
    cumulative_pnl: Decimal
    last_trade_date: Optional[datetime]
    assets: List[AssetTradeStats]


def calculate_trade_statistics(
    ledger: CostBasisLedger, balances: Mapping[str, Decimal]
) -> TradeStatistics:
    """
    Aggregate trade count, volume and realized P&L.

    Every asset with a positive balance or any completed trade gets a row,
    ordered by symbol.
    """
    symbols = {s.upper() for s, q in balances.items() if q > 0} | set(ledger.assets)

    total_trades = 0
    total_volume = ZERO
    cumulative_pnl = ZERO
    last_trade: Optional[datetime] = None
    rows = []

    for symbol in sorted(symbols):
        asset = ledger.get(symbol)
        trades = asset.trade_count if asset else 0
        pnl = asset.realized_pnl if asset else ZERO
        if asset is not None:
            total_trades += asset.trade_count
            total_volume += asset.trade_volume
            cumulative_pnl += asset.realized_pnl
            if asset.last_trade_at and (last_trade is None or asset.last_trade_at > last_trade):
                last_trade = asset.last_trade_at
        rows.append(AssetTradeStats(
            symbol=symbol,
            amount=balances.get(symbol, ZERO),
            trades=trades,
            pnl=pnl,
        ))

    return TradeStatistics(
        total_trades=total_trades,
        total_trade_volume=total_volume,
        cumulative_pnl=cumulative_pnl,
        last_trade_date=last_trade,
        assets=rows,
    )
