"""
Portfolio Valuation Metrics

Metrics:
1. Value per asset: value_i = quantity_i * currentPrice_i
2. Total Portfolio Value: sum(value_i) over assets with a price
3. Allocation: weight_i = value_i / totalPortfolioValue
4. Average price: totalCostBasis_i / ledgerRemainingQuantity_i

Assets without a price stay listed but contribute nothing to totals.
"""
from typing import List, Dict, Optional
from decimal import Decimal
from dataclasses import dataclass

ZERO = Decimal(0)
HUNDRED = Decimal(100)


@dataclass
class PortfolioHolding:
    """Portfolio holding data."""
    symbol: str
    amount: Decimal  # Recorded balance quantity
    current_price: Optional[Decimal] = None  # None when the price is unavailable
    cost_basis: Decimal = ZERO  # Ledger cost of the remaining lots
    ledger_quantity: Decimal = ZERO  # Ledger remaining quantity
    has_history: bool = False
    name: Optional[str] = None

    @property
    def price_available(self) -> bool:
        return self.current_price is not None

    @property
    def value(self) -> Optional[Decimal]:
        if self.current_price is None:
            return None
        return self.amount * self.current_price


@dataclass(frozen=True)
class AssetValuation:
    """One row of the valuation summary."""
    symbol: str
    name: Optional[str]
    quantity: Decimal
    current_price: Optional[Decimal]
    value: Optional[Decimal]
    average_price: Optional[Decimal]
    cost_basis: Decimal
    allocation_percentage: Decimal
    price_available: bool


@dataclass(frozen=True)
class PortfolioValuation:
    """Valuation summary over held assets."""
    total_value: Decimal
    assets: List[AssetValuation]

    @property
    def count(self) -> int:
        return len(self.assets)


def held_holdings(holdings: List[PortfolioHolding]) -> List[PortfolioHolding]:
    """Holdings with a positive recorded quantity."""
    return [h for h in holdings if h.amount > 0]


def calculate_portfolio_value(holdings: List[PortfolioHolding]) -> Decimal:
    """
    Calculate total portfolio value.

    Formula: sum(amount_i * currentPrice_i) over held, priced assets
    """
    total = ZERO
    for holding in held_holdings(holdings):
        if holding.price_available:
            total += holding.value
    return total


def calculate_allocation(holdings: List[PortfolioHolding]) -> Dict[str, Decimal]:
    """
    Calculate allocation (weight) per held asset.

    Formula: weight_i = value_i / totalPortfolioValue
    All weights are zero when the total value is zero.
    """
    held = held_holdings(holdings)
    total_value = calculate_portfolio_value(held)

    if total_value == 0:
        return {holding.symbol: ZERO for holding in held}

    allocation = {}
    for holding in held:
        if holding.price_available:
            allocation[holding.symbol] = holding.value / total_value
        else:
            allocation[holding.symbol] = ZERO

    return allocation


def calculate_average_price(holding: PortfolioHolding) -> Optional[Decimal]:
    """
    Average acquisition price of the ledger's remaining lots.

    None when the asset has no trade history at all; 0 when history exists
    but no lot remains.
    """
    if not holding.has_history:
        return None
    if holding.ledger_quantity <= 0:
        return ZERO
    return holding.cost_basis / holding.ledger_quantity


def build_valuation(holdings: List[PortfolioHolding]) -> PortfolioValuation:
    """
    Build the sorted, percentage-allocated valuation summary.

    Rows are ordered by value descending, then symbol ascending; rows without
    a price sort as value 0.
    """
    held = held_holdings(holdings)
    total_value = calculate_portfolio_value(held)
    allocation = calculate_allocation(held)

    rows = [
        AssetValuation(
            symbol=h.symbol,
            name=h.name,
            quantity=h.amount,
            current_price=h.current_price,
            value=h.value,
            average_price=calculate_average_price(h),
            cost_basis=h.cost_basis,
            allocation_percentage=allocation.get(h.symbol, ZERO) * HUNDRED,
            price_available=h.price_available,
        )
        for h in held
    ]
    rows.sort(key=lambda row: (-(row.value or ZERO), row.symbol))

    return PortfolioValuation(total_value=total_value, assets=rows)
