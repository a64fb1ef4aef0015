"""
Market data models

Pydantic data structures for the 15m candle pipeline:
- Candle: OHLCV candlestick (immutable once closed)
- IndicatorRecord: Indicator values computed for one candle
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Candle(BaseModel):
    """
    OHLCV candlestick

    One fixed-duration interval. open_time is the natural unique key and
    sort key; close_time = open_time + interval - 1 ms.
    """

    model_config = ConfigDict(frozen=True)

    open_time: datetime = Field(description="Interval start (UTC)")
    open_price: Decimal = Field(ge=0, description="Opening price")
    high_price: Decimal = Field(ge=0, description="Highest price in interval")
    low_price: Decimal = Field(ge=0, description="Lowest price in interval")
    close_price: Decimal = Field(ge=0, description="Closing price")
    volume: Decimal = Field(ge=0, description="Base asset volume traded")
    close_time: datetime = Field(description="Interval end (UTC, inclusive)")

    def to_row(self) -> tuple:
        """Convert to column tuple for database insertion"""
        return (
            self.open_time,
            self.open_price,
            self.high_price,
            self.low_price,
            self.close_price,
            self.volume,
            self.close_time,
        )


class IndicatorRecord(BaseModel):
    """
    Technical indicators for one candle

    Keyed 1:1 by the candle's open_time. Any field may be None when its
    lookback window was unavailable; None is a permanent, valid state.
    """

    model_config = ConfigDict(frozen=True)

    open_time: datetime = Field(description="open_time of the source candle")
    ema50: Decimal | None = Field(default=None, description="EMA(50) of close")
    ema200: Decimal | None = Field(default=None, description="EMA(200) of close")
    rsi14: Decimal | None = Field(default=None, description="RSI(14), scale 4")
    atr14: Decimal | None = Field(default=None, description="ATR(14)")
    bb_upper: Decimal | None = Field(default=None, description="Bollinger upper band (20, 2)")
    bb_middle: Decimal | None = Field(default=None, description="Bollinger middle band (SMA 20)")
    bb_lower: Decimal | None = Field(default=None, description="Bollinger lower band (20, 2)")
    avg_volume20: Decimal | None = Field(default=None, description="SMA(20) of volume")

    def to_row(self) -> tuple:
        """Convert to column tuple for database insertion"""
        return (
            self.open_time,
            self.ema50,
            self.ema200,
            self.rsi14,
            self.atr14,
            self.bb_upper,
            self.bb_middle,
            self.bb_lower,
            self.avg_volume20,
        )
