"""
Unit tests for Portfolio Valuation Metrics.
"""
import unittest
from decimal import Decimal

from shared.analytics.portfolio.portfolio_metrics import (
    PortfolioHolding,
    build_valuation,
    calculate_allocation,
    calculate_average_price,
    calculate_portfolio_value,
)


class TestPortfolioMetrics(unittest.TestCase):
    """Test Portfolio Metrics calculations."""

    def test_portfolio_value(self):
        """Test portfolio value calculation."""
        holdings = [
            PortfolioHolding(
                symbol="BTC",
                amount=Decimal("0.5"),
                current_price=Decimal("50000")
            ),
            PortfolioHolding(
                symbol="ETH",
                amount=Decimal("2"),
                current_price=Decimal("3000")
            ),
        ]

        total = calculate_portfolio_value(holdings)
        expected = Decimal("0.5") * Decimal("50000") + Decimal("2") * Decimal("3000")
        self.assertEqual(total, expected)

    def test_value_skips_unpriced_and_empty_holdings(self):
        holdings = [
            PortfolioHolding(symbol="BTC", amount=Decimal("1"), current_price=Decimal("100")),
            PortfolioHolding(symbol="XYZ", amount=Decimal("5")),
            PortfolioHolding(symbol="ETH", amount=Decimal("0"), current_price=Decimal("100")),
        ]

        self.assertEqual(calculate_portfolio_value(holdings), Decimal("100"))

    def test_allocation(self):
        """Test allocation calculation."""
        holdings = [
            PortfolioHolding(
                symbol="BTC",
                amount=Decimal("0.5"),
                current_price=Decimal("50000")
            ),
            PortfolioHolding(
                symbol="ETH",
                amount=Decimal("2"),
                current_price=Decimal("3000")
            ),
        ]

        allocation = calculate_allocation(holdings)

        # Weights should sum to 1
        total_weight = sum(allocation.values())
        self.assertAlmostEqual(float(total_weight), 1.0, places=6)

    def test_allocation_with_zero_total(self):
        holdings = [PortfolioHolding(symbol="BTC", amount=Decimal("1"))]

        self.assertEqual(calculate_allocation(holdings), {"BTC": Decimal(0)})

    def test_average_price(self):
        with_lots = PortfolioHolding(
            symbol="BTC", amount=Decimal("2"), cost_basis=Decimal("70000"),
            ledger_quantity=Decimal("2"), has_history=True,
        )
        exhausted = PortfolioHolding(symbol="ETH", amount=Decimal("1"), has_history=True)
        no_history = PortfolioHolding(symbol="SOL", amount=Decimal("1"))

        self.assertEqual(calculate_average_price(with_lots), Decimal("35000"))
        self.assertEqual(calculate_average_price(exhausted), Decimal(0))
        self.assertIsNone(calculate_average_price(no_history))

    def test_build_valuation_ordering(self):
        holdings = [
            PortfolioHolding(symbol="XYZ", amount=Decimal("9")),
            PortfolioHolding(symbol="ETH", amount=Decimal("1"), current_price=Decimal("100")),
            PortfolioHolding(symbol="BTC", amount=Decimal("1"), current_price=Decimal("100")),
            PortfolioHolding(symbol="SOL", amount=Decimal("1"), current_price=Decimal("300")),
            PortfolioHolding(symbol="DOT", amount=Decimal("0"), current_price=Decimal("300")),
        ]

        valuation = build_valuation(holdings)

        self.assertEqual([a.symbol for a in valuation.assets], ["SOL", "BTC", "ETH", "XYZ"])
        self.assertEqual(valuation.count, 4)
        self.assertEqual(valuation.total_value, Decimal("500"))
        self.assertEqual(valuation.assets[0].allocation_percentage, Decimal("60"))
        self.assertFalse(valuation.assets[-1].price_available)

    def test_empty_valuation(self):
        valuation = build_valuation([])

        self.assertEqual(valuation.total_value, Decimal(0))
        self.assertEqual(valuation.assets, [])


if __name__ == "__main__":
    unittest.main()
