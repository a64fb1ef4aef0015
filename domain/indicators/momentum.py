"""
Momentum indicators

Implementations:
- RSI: Relative Strength Index (simple-average variant)
"""

from decimal import Decimal

from core.interfaces.indicators import BaseIndicator
from core.models.market_data import Candle
from core.utils.decimal_math import HUNDRED, ONE, ZERO, divide, exact_arithmetic, to_percent_scale


class RSI(BaseIndicator):
    """
    Relative Strength Index

    Formula: RSI = 100 - (100 / (1 + RS))
    where RS = Average Gain / Average Loss

    Average gain and loss are plain means of the last `period` close-to-close
    changes (no Wilder smoothing). A zero change counts toward losses.

    Range: 0-100
    - RSI > 70: Overbought
    - RSI < 30: Oversold

    Example:
        >>> rsi = RSI(period=14)
        >>> value = rsi.calculate(candles)  # needs 15 candles
        >>> print(value)
        Decimal('63.2154')
    """

    @property
    def min_candles(self) -> int:
        return self.period + 1

    def calculate(self, candles: list[Candle]) -> Decimal | None:
        """Calculate RSI"""
        if not self.has_enough_data(candles):
            return None

        gains = ZERO
        losses = ZERO
        with exact_arithmetic():
            for i in range(len(candles) - self.period, len(candles)):
                change = candles[i].close_price - candles[i - 1].close_price
                if change > ZERO:
                    gains += change
                else:
                    losses += abs(change)

        avg_gain = divide(gains, self.period)
        avg_loss = divide(losses, self.period)

        if avg_loss == ZERO:
            return to_percent_scale(HUNDRED)

        rs = divide(avg_gain, avg_loss)
        with exact_arithmetic():
            rsi = HUNDRED - divide(HUNDRED, ONE + rs)

        return to_percent_scale(rsi)
