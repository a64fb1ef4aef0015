"""
Validators module

Data quality validators for market data
"""

from core.validators.market_data import CandleValidator

__all__ = ["CandleValidator"]
