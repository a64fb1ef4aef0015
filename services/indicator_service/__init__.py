"""
Indicator Service - Technical Indicator Calculation

Scheduled service that:
1. Reads closed candles from ClickHouse (populated by Sync Service)
2. Calculates EMA50/200, RSI14, ATR14, Bollinger(20, 2), AvgVolume20
3. Persists one record per candle, resumable after interruption
"""

from services.indicator_service.calculator import EmaState, IndicatorCalculator
from services.indicator_service.engine import IncrementalIndicatorEngine

__all__ = ["EmaState", "IndicatorCalculator", "IncrementalIndicatorEngine"]
