"""
Indicator Calculator - Builds one indicator record from a candle window

Clean separation of concerns:
- Formulas live in domain/indicators (pure, stateless)
- This class fixes the indicator set and periods for the 15m series
- IncrementalIndicatorEngine owns windows, state and persistence

Architecture:
    IncrementalIndicatorEngine → load window, carry EMA state
    IndicatorCalculator → compute all families for the window's last candle
    BaseIndicatorStore → persist IndicatorRecord
"""

from decimal import Decimal
from typing import NamedTuple

from core.models.market_data import Candle, IndicatorRecord
from domain.indicators import ATR, EMA, RSI, AvgVolume, BollingerBands


class EmaState(NamedTuple):
    """Continuation state carried between consecutive candles"""

    ema50: Decimal | None = None
    ema200: Decimal | None = None

    @classmethod
    def from_record(cls, record: IndicatorRecord | None) -> "EmaState":
        if record is None:
            return cls()
        return cls(ema50=record.ema50, ema200=record.ema200)


class IndicatorCalculator:
    """Compute the fixed indicator families for the last candle of a window"""

    def __init__(self):
        self.ema50 = EMA(period=50)
        self.ema200 = EMA(period=200)
        self.rsi14 = RSI(period=14)
        self.atr14 = ATR(period=14)
        self.bollinger = BollingerBands(period=20, multiplier=2.0)
        self.avg_volume20 = AvgVolume(period=20)

    def build_indicator(self, window: list[Candle], state: EmaState) -> IndicatorRecord:
        """
        Build the indicator record for window[-1]

        Args:
            window: Candles ordered by open_time ASC, ending at the target candle
            state: Previous EMA values (None seeds each EMA from its SMA)

        Returns:
            IndicatorRecord keyed by the last candle's open_time. Fields whose
            window is too short are None.

        Raises:
            ValueError: If window is empty
        """
        if not window:
            raise ValueError("Cannot build indicators from an empty window")

        bands = self.bollinger.calculate(window)

        return IndicatorRecord(
            open_time=window[-1].open_time,
            ema50=self.ema50.calculate(window, previous=state.ema50),
            ema200=self.ema200.calculate(window, previous=state.ema200),
            rsi14=self.rsi14.calculate(window),
            atr14=self.atr14.calculate(window),
            bb_upper=bands.upper if bands else None,
            bb_middle=bands.middle if bands else None,
            bb_lower=bands.lower if bands else None,
            avg_volume20=self.avg_volume20.calculate(window),
        )
