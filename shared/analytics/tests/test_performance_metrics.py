"""
Unit tests for Portfolio Performance Metrics and trade statistics.
"""
import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from shared.analytics.portfolio.cost_basis import build_ledger
from shared.analytics.portfolio.performance_metrics import (
    PerformancePosition,
    calculate_gain_loss,
    calculate_performance,
    calculate_roi,
)
from shared.analytics.portfolio.trade_statistics import calculate_trade_statistics
from shared.data_providers.interfaces import TradeEvent, TradeSide, TradeStatus


def position(symbol, quantity, cost, price=None):
    return PerformancePosition(
        symbol=symbol,
        quantity=Decimal(quantity),
        cost_basis=Decimal(cost),
        current_price=Decimal(price) if price is not None else None,
    )


class TestPerformanceMetrics(unittest.TestCase):

    def test_gain_loss_split(self):
        self.assertEqual(calculate_gain_loss(Decimal(150), Decimal(100)), (Decimal(50), Decimal(0)))
        self.assertEqual(calculate_gain_loss(Decimal(80), Decimal(100)), (Decimal(0), Decimal(20)))

    def test_roi_without_cost(self):
        self.assertEqual(calculate_roi(Decimal(10), Decimal(0)), Decimal(0))

    def test_aggregate(self):
        result = calculate_performance([
            position("ETH", "10", "40000", "3000"),
            position("BTC", "1", "30000", "45000"),
        ])

        self.assertEqual(result.total_gain, Decimal("15000"))
        self.assertEqual(result.total_loss, Decimal("10000"))
        self.assertEqual(result.net_gain, Decimal("5000"))
        self.assertEqual(result.total_cost_basis, Decimal("70000"))
        self.assertEqual(result.total_current_value, Decimal("75000"))
        self.assertEqual([a.symbol for a in result.assets], ["BTC", "ETH"])
        self.assertEqual(result.assets[1].roi, Decimal("-25"))

    def test_unpriced_position_excluded_from_totals(self):
        result = calculate_performance([
            position("BTC", "1", "100", "120"),
            position("XYZ", "5", "50"),
        ])

        self.assertEqual(result.total_cost_basis, Decimal("100"))
        self.assertEqual(result.roi, Decimal("20"))
        self.assertIsNone(result.assets[1].current_value)
        self.assertFalse(result.assets[1].price_available)

    def test_empty(self):
        result = calculate_performance([])

        self.assertEqual(result.roi, Decimal(0))
        self.assertEqual(result.assets, [])


class TestTradeStatistics(unittest.TestCase):

    def test_statistics(self):
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        trades = [
            TradeEvent("BTC", TradeSide.BUY, Decimal("1"), Decimal("100"), TradeStatus.COMPLETED, base),
            TradeEvent("BTC", TradeSide.SELL, Decimal("1"), Decimal("150"), TradeStatus.COMPLETED,
                       base + timedelta(days=1)),
            TradeEvent("ETH", TradeSide.BUY, Decimal("2"), Decimal("10"), TradeStatus.FAILED,
                       base + timedelta(days=2)),
        ]
        ledger = build_ledger(trades)

        stats = calculate_trade_statistics(ledger, {"BTC": Decimal("0"), "SOL": Decimal("3")})

        self.assertEqual(stats.total_trades, 2)
        self.assertEqual(stats.total_trade_volume, Decimal("250"))
        self.assertEqual(stats.cumulative_pnl, Decimal("50"))
        self.assertEqual(stats.last_trade_date, base + timedelta(days=1))
        self.assertEqual([(a.symbol, a.amount, a.trades) for a in stats.assets], [
            ("BTC", Decimal("0"), 2),
            ("SOL", Decimal("3"), 0),
        ])

    def test_no_history(self):
        stats = calculate_trade_statistics(build_ledger([]), {})

        self.assertEqual(stats.total_trades, 0)
        self.assertIsNone(stats.last_trade_date)
        self.assertEqual(stats.assets, [])


if __name__ == "__main__":
    unittest.main()
