"""
Moving average indicators

Implementations:
- EMA: Exponential Moving Average (seeded from the caller's previous value)
- AvgVolume: Simple moving average of volume
"""

from decimal import Decimal

from core.interfaces.indicators import BaseIndicator
from core.models.market_data import Candle
from core.utils.decimal_math import ONE, TWO, divide, exact_arithmetic, mean, to_price_scale


class EMA(BaseIndicator):
    """
    Exponential Moving Average

    Formula: EMA = Close × k + EMA_prev × (1 - k)
    where k = 2 / (period + 1)

    Note:
        With no previous value the seed is the SMA of the last `period`
        closes, so the first EMA of a series depends only on the window.
        After that the caller threads its own previous value through.

    Example:
        >>> ema = EMA(period=50)
        >>> first = ema.calculate(candles)
        >>> nxt = ema.calculate(candles_next, previous=first)
    """

    def __init__(self, period: int):
        """
        Initialize EMA

        Args:
            period: Look-back period
        """
        super().__init__(period=period)
        self.k = divide(TWO, period + 1)

    def calculate(self, candles: list[Candle], previous: Decimal | None = None) -> Decimal | None:
        """Calculate EMA for the last candle of the window"""
        if not self.has_enough_data(candles):
            return None

        if previous is None:
            previous = mean((c.close_price for c in candles[-self.period :]), self.period)

        close = candles[-1].close_price
        with exact_arithmetic():
            value = close * self.k + previous * (ONE - self.k)

        return to_price_scale(value)


class AvgVolume(BaseIndicator):
    """
    Average Volume

    Formula: AvgVolume = SUM(Volume) / N
    """

    def calculate(self, candles: list[Candle]) -> Decimal | None:
        """Calculate average volume over the last `period` candles"""
        if not self.has_enough_data(candles):
            return None

        return to_price_scale(mean((c.volume for c in candles[-self.period :]), self.period))
