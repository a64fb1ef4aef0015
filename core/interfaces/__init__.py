"""Interfaces module - Abstract base classes for external collaborators"""

from .database import BaseCandleStore, BaseIndicatorStore, BaseTimeSeriesDB
from .indicators import BaseIndicator
from .market_data import BaseMarketDataSource
from .patterns import BasePatternStage

__all__ = [
    "BaseTimeSeriesDB",
    "BaseCandleStore",
    "BaseIndicatorStore",
    "BaseIndicator",
    "BaseMarketDataSource",
    "BasePatternStage",
]
