"""
Volatility indicators

Implementations:
- ATR: Average True Range (simple average)
- BollingerBands: SMA ± multiplier × population standard deviation
"""

from decimal import Decimal
from typing import NamedTuple

from core.interfaces.indicators import BaseIndicator
from core.models.market_data import Candle
from core.utils.decimal_math import ZERO, divide, exact_arithmetic, mean, sqrt, to_price_scale


class BandValues(NamedTuple):
    """Upper / middle / lower band, all at price scale"""

    upper: Decimal
    middle: Decimal
    lower: Decimal


class ATR(BaseIndicator):
    """
    Average True Range

    True Range = max(High - Low, |High - PrevClose|, |Low - PrevClose|)
    ATR = SUM(True Range over last N steps) / N
    """

    @property
    def min_candles(self) -> int:
        return self.period + 1

    def calculate(self, candles: list[Candle]) -> Decimal | None:
        """Calculate ATR"""
        if not self.has_enough_data(candles):
            return None

        total = ZERO
        with exact_arithmetic():
            for i in range(len(candles) - self.period, len(candles)):
                current = candles[i]
                prev_close = candles[i - 1].close_price
                total += max(
                    current.high_price - current.low_price,
                    abs(current.high_price - prev_close),
                    abs(current.low_price - prev_close),
                )

        return to_price_scale(divide(total, self.period))


class BollingerBands(BaseIndicator):
    """
    Bollinger Bands

    Middle = SMA(Close, N)
    Upper  = Middle + StdDev × multiplier
    Lower  = Middle - StdDev × multiplier

    StdDev is the population standard deviation (divide by N), computed
    with the Newton-Raphson sqrt from core.utils.decimal_math.

    Example:
        >>> bb = BollingerBands(period=20, multiplier=2.0)
        >>> bands = bb.calculate(candles)
        >>> bands.upper > bands.middle > bands.lower
        True
    """

    def __init__(self, period: int = 20, multiplier: float = 2.0):
        """
        Initialize Bollinger Bands

        Args:
            period: Look-back period
            multiplier: Standard deviation multiplier
        """
        super().__init__(period=period, multiplier=multiplier)
        self.multiplier = Decimal(str(multiplier))

    def calculate(self, candles: list[Candle]) -> BandValues | None:
        """Calculate upper, middle and lower bands"""
        if not self.has_enough_data(candles):
            return None

        closes = [c.close_price for c in candles[-self.period :]]
        middle = mean(closes, self.period)

        with exact_arithmetic():
            variance_sum = sum(((close - middle) * (close - middle) for close in closes), ZERO)
        std_dev = sqrt(divide(variance_sum, self.period))

        with exact_arithmetic():
            deviation = std_dev * self.multiplier
            upper = middle + deviation
            lower = middle - deviation

        return BandValues(
            upper=to_price_scale(upper),
            middle=to_price_scale(middle),
            lower=to_price_scale(lower),
        )
