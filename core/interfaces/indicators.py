"""
Abstract interface for technical indicators

Cloud-agnostic indicator base class
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from core.models.market_data import Candle

logger = logging.getLogger(__name__)


class BaseIndicator(ABC):
    """
    Indicator interface

    Design principle:
    - Pure calculation logic (no database dependency)
    - Deterministic Decimal arithmetic (core.utils.decimal_math)
    - Insufficient history is not an error: calculate() returns None

    Implementations:
    - EMA, AvgVolume (domain/indicators/moving_averages.py)
    - RSI (domain/indicators/momentum.py)
    - ATR, BollingerBands (domain/indicators/volatility.py)
    """

    def __init__(self, period: int, **kwargs):
        """
        Initialize indicator

        Args:
            period: Look-back period for calculation
            **kwargs: Additional indicator-specific parameters

        Raises:
            ValueError: If period is not positive
        """
        if period <= 0:
            raise ValueError(f"{self.__class__.__name__}: period must be positive, got {period}")

        self.period = period
        self.name = self.__class__.__name__
        self.params = {"period": period, **kwargs}

    @property
    def min_candles(self) -> int:
        """Smallest window this indicator can be computed on"""
        return self.period

    def has_enough_data(self, candles: list[Candle]) -> bool:
        if len(candles) < self.min_candles:
            logger.debug(f"{self!r}: only {len(candles)} candles, need {self.min_candles}")
            return False
        return True

    @abstractmethod
    def calculate(self, candles: list[Candle]) -> Any:
        """
        Calculate indicator from candle data

        Args:
            candles: List of CLOSED candles, ordered by time ASC
                     (oldest first). The last candle is the one being
                     computed for.

        Returns:
            Indicator value rounded to output scale, or None if the
            window is shorter than min_candles
        """

    def __repr__(self) -> str:
        """String representation"""
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({params_str})"
