"""
Unit tests for momentum indicators (RSI)

Tests with known scenarios: overbought, oversold, boundaries
"""

from decimal import Decimal

import pytest

from domain.indicators.momentum import RSI
from tests.unit.indicators.test_moving_averages import create_test_candle


@pytest.mark.unit
class TestRSI:
    """Test Relative Strength Index with known scenarios"""

    def test_rsi_hand_calculated(self):
        """Simple averages of the last `period` changes"""
        # Changes: +2, -1 → avg gain 1, avg loss 0.5, RS 2 → 100 - 100/3
        candles = [create_test_candle(p, i) for i, p in enumerate([10, 12, 11])]

        result = RSI(period=2).calculate(candles)

        assert result == Decimal("66.6667")
        assert result.as_tuple().exponent == -4

    def test_rsi_all_gains_is_exactly_100(self):
        """Zero average loss gives 100.0000 (no division)"""
        candles = [create_test_candle(50 + i, i) for i in range(15)]

        result = RSI(period=14).calculate(candles)

        assert result == Decimal("100")
        assert str(result) == "100.0000"

    def test_rsi_flat_series_is_100(self):
        """Zero changes count as (zero) losses, so avg loss is still 0"""
        candles = [create_test_candle(100, i) for i in range(15)]

        assert str(RSI(period=14).calculate(candles)) == "100.0000"

    def test_rsi_all_losses_is_zero(self):
        """Zero average gain gives RS 0 → RSI 0"""
        candles = [create_test_candle(100 - i, i) for i in range(15)]

        assert str(RSI(period=14).calculate(candles)) == "0.0000"

    def test_rsi_overbought(self):
        """Mostly rising window → RSI > 70"""
        prices = [100, 102, 104, 103, 105, 107, 109, 108, 110, 112, 114, 113, 115, 117, 119]
        candles = [create_test_candle(p, i) for i, p in enumerate(prices)]

        result = RSI(period=14).calculate(candles)

        assert result is not None
        assert Decimal(70) < result < Decimal(100)

    def test_rsi_only_uses_last_period_changes(self):
        """Changes before the last `period` steps are ignored"""
        base = [create_test_candle(p, i) for i, p in enumerate([10, 12, 11])]
        crash_first = [create_test_candle(p, i) for i, p in enumerate([500, 10, 12, 11])]

        assert RSI(period=2).calculate(crash_first) == RSI(period=2).calculate(base)

    def test_rsi_requires_period_plus_one(self):
        """14 candles give only 13 changes → None"""
        candles = [create_test_candle(100 + i, i) for i in range(14)]

        rsi = RSI(period=14)

        assert rsi.min_candles == 15
        assert rsi.calculate(candles) is None
        assert rsi.calculate(candles + [create_test_candle(120, 14)]) is not None
