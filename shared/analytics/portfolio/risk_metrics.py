"""
Portfolio Risk Metrics

All metrics derive from valuation weights weight_i = value_i / totalValue:
- concentrationRisk = 100 * max(weight_i)
- HHI = sum(weight_i^2)
- diversificationScore = 100 * (1 - HHI)
- effectiveAssets = 1 / HHI
- volatilityEstimate = sum(weight_i * expectedVolatility(symbol_i))

Headline scores are clamped to 0-100. With no value every metric is zero.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from .portfolio_metrics import PortfolioHolding, calculate_allocation
from .volatility_table import VolatilityProvider

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)


@dataclass(frozen=True)
class RiskProfile:
    """Concentration, diversification and volatility for one portfolio."""
    concentration_risk: Decimal
    diversification_score: Decimal
    volatility_estimate: Decimal
    largest_holding: Optional[str]
    largest_holding_percentage: Decimal
    herfindahl_index: Decimal
    effective_assets: Decimal


def clamp_score(value: Decimal) -> Decimal:
    """Clamp a score to the 0-100 range."""
    return max(ZERO, min(value, HUNDRED))


def calculate_herfindahl_index(weights: Mapping[str, Decimal]) -> Decimal:
    """HHI = sum(weight_i^2)."""
    return sum((w * w for w in weights.values()), ZERO)


def find_largest_holding(weights: Mapping[str, Decimal]) -> Tuple[Optional[str], Decimal]:
    """Symbol with the largest positive weight; ties go to the first symbol alphabetically."""
    largest, largest_weight = None, ZERO
    for symbol in sorted(weights):
        if weights[symbol] > largest_weight:
            largest, largest_weight = symbol, weights[symbol]
    return largest, largest_weight


def calculate_concentration_risk(weights: Mapping[str, Decimal]) -> Decimal:
    """Percentage of the portfolio held in the largest position."""
    _, largest_weight = find_largest_holding(weights)
    return clamp_score(largest_weight * HUNDRED)


def calculate_diversification_score(weights: Mapping[str, Decimal]) -> Decimal:
    """
    Diversification score using the Herfindahl-Hirschman Index.

    0 for a single asset, approaching 100 as value spreads evenly over many.
    """
    hhi = calculate_herfindahl_index(weights)
    if hhi == 0:
        return ZERO
    return clamp_score((ONE - hhi) * HUNDRED)


def calculate_effective_assets(weights: Mapping[str, Decimal]) -> Decimal:
    """Effective number of equally-weighted assets, 1 / HHI."""
    hhi = calculate_herfindahl_index(weights)
    if hhi == 0:
        return ZERO
    return ONE / hhi


def calculate_volatility_estimate(
    weights: Mapping[str, Decimal], volatility: VolatilityProvider
) -> Decimal:
    """Weighted average of expected asset volatility."""
    estimate = ZERO
    for symbol in sorted(weights):
        weight = weights[symbol]
        if weight > 0:
            estimate += weight * volatility.get_volatility(symbol)
    return clamp_score(estimate)


def calculate_risk_profile(
    holdings: List[PortfolioHolding], volatility: VolatilityProvider
) -> RiskProfile:
    """
    Calculate the full risk profile for a set of holdings.

    Holdings without a price carry zero weight.
    """
    weights: Dict[str, Decimal] = calculate_allocation(holdings)
    largest, largest_weight = find_largest_holding(weights)

    return RiskProfile(
        concentration_risk=calculate_concentration_risk(weights),
        diversification_score=calculate_diversification_score(weights),
        volatility_estimate=calculate_volatility_estimate(weights, volatility),
        largest_holding=largest,
        largest_holding_percentage=clamp_score(largest_weight * HUNDRED),
        herfindahl_index=calculate_herfindahl_index(weights),
        effective_assets=calculate_effective_assets(weights),
    )
