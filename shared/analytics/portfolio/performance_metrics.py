"""
Portfolio Performance Metrics

Per asset:
- currentValue = ledgerRemainingQuantity * currentPrice
- gain = max(0, currentValue - costBasis)
- loss = max(0, costBasis - currentValue)

Aggregate:
- netGain = totalGain - totalLoss
- roi = 100 * netGain / totalCostBasis (0 when totalCostBasis is 0)
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

ZERO = Decimal(0)
HUNDRED = Decimal(100)


@dataclass
class PerformancePosition:
    """Ledger position priced for performance."""
    symbol: str
    quantity: Decimal  # Ledger remaining quantity
    cost_basis: Decimal
    current_price: Optional[Decimal] = None
    trade_count: int = 0

    @property
    def price_available(self) -> bool:
        return self.current_price is not None

    @property
    def current_value(self) -> Optional[Decimal]:
        if self.current_price is None:
            return None
        return self.quantity * self.current_price


@dataclass(frozen=True)
class AssetPerformance:
    symbol: str
    quantity: Decimal
    cost_basis: Decimal
    current_value: Optional[Decimal]
    total_gain: Decimal
    total_loss: Decimal
    roi: Decimal
    trade_count: int
    price_available: bool


@dataclass(frozen=True)
class PortfolioPerformance:
    total_gain: Decimal
    total_loss: Decimal
    roi: Decimal
    total_cost_basis: Decimal
    total_current_value: Decimal
    net_gain: Decimal
    assets: List[AssetPerformance]


def calculate_gain_loss(current_value: Decimal, cost_basis: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Split the difference between value and cost into (gain, loss).

    Exactly one of the two is non-zero unless value equals cost.
    """
    diff = current_value - cost_basis
    if diff > 0:
        return diff, ZERO
    return ZERO, -diff


def calculate_roi(net_gain: Decimal, cost_basis: Decimal) -> Decimal:
    """ROI = (netGain / costBasis) * 100, 0 without cost basis."""
    if cost_basis <= 0:
        return ZERO
    return net_gain / cost_basis * HUNDRED


def calculate_performance(positions: List[PerformancePosition]) -> PortfolioPerformance:
    """
    Calculate per-asset and aggregate gain/loss/ROI.

    Positions without a price are listed with zero gain/loss and are left
    out of every total. Rows are ordered by symbol.
    """
    rows = []
    total_gain = ZERO
    total_loss = ZERO
    total_cost_basis = ZERO
    total_current_value = ZERO

    for position in sorted(positions, key=lambda p: p.symbol):
        current_value = position.current_value
        if current_value is None:
            rows.append(AssetPerformance(
                symbol=position.symbol,
                quantity=position.quantity,
                cost_basis=position.cost_basis,
                current_value=None,
                total_gain=ZERO,
                total_loss=ZERO,
                roi=ZERO,
                trade_count=position.trade_count,
                price_available=False,
            ))
            continue

        gain, loss = calculate_gain_loss(current_value, position.cost_basis)
        total_gain += gain
        total_loss += loss
        total_cost_basis += position.cost_basis
        total_current_value += current_value

        rows.append(AssetPerformance(
            symbol=position.symbol,
            quantity=position.quantity,
            cost_basis=position.cost_basis,
            current_value=current_value,
            total_gain=gain,
            total_loss=loss,
            roi=calculate_roi(gain - loss, position.cost_basis),
            trade_count=position.trade_count,
            price_available=True,
        ))

    net_gain = total_gain - total_loss
    return PortfolioPerformance(
        total_gain=total_gain,
        total_loss=total_loss,
        roi=calculate_roi(net_gain, total_cost_basis),
        total_cost_basis=total_cost_basis,
        total_current_value=total_current_value,
        net_gain=net_gain,
        assets=rows,
    )
