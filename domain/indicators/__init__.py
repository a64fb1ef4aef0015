"""
Technical indicators module

Exports:
- BaseIndicator (core/interfaces/indicators.py)
- Moving averages: EMA, AvgVolume
- Momentum: RSI
- Volatility: ATR, BollingerBands
"""

from core.interfaces.indicators import BaseIndicator
from domain.indicators.momentum import RSI
from domain.indicators.moving_averages import EMA, AvgVolume
from domain.indicators.volatility import ATR, BandValues, BollingerBands

__all__ = [
    "BaseIndicator",
    "EMA",
    "AvgVolume",
    "RSI",
    "ATR",
    "BollingerBands",
    "BandValues",
]
