"""
Market configuration loader with YAML support and Pydantic validation
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator

from core.utils.timeframe import supported_timeframes

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 1000


class MarketConfig(BaseModel):
    """The single candle series this deployment tracks"""

    exchange: str = "binance"
    symbol: str = "BTC/USDT"  # Unified ccxt format
    timeframe: str = "15m"
    listing_epoch_ms: int = 1502942400000
    page_limit: int = MAX_PAGE_LIMIT

    @field_validator("timeframe")
    @classmethod
    def timeframe_supported(cls, v):
        if v not in supported_timeframes():
            raise ValueError(f"Unsupported timeframe: {v} (supported: {supported_timeframes()})")
        return v

    @field_validator("page_limit")
    @classmethod
    def page_limit_in_range(cls, v):
        if not 1 <= v <= MAX_PAGE_LIMIT:
            raise ValueError(f"page_limit must be between 1 and {MAX_PAGE_LIMIT}, got {v}")
        return v

    @field_validator("listing_epoch_ms")
    @classmethod
    def listing_epoch_not_negative(cls, v):
        if v < 0:
            raise ValueError("listing_epoch_ms cannot be negative")
        return v


def load_market_config(config_path: str = "config/providers/market.yaml") -> MarketConfig:
    """
    Load and validate market configuration from YAML

    Args:
        config_path: Path to market.yaml file

    Returns:
        MarketConfig: Validated market configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid

    Example:
        >>> market = load_market_config()
        >>> print(market.symbol, market.timeframe)
        BTC/USDT 15m
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Market config not found: {config_path}")

    # Load YAML
    with open(config_file) as f:
        data = yaml.safe_load(f) or {}

    # Validate with Pydantic
    try:
        market = MarketConfig(**data.get("market", {}))
        logger.info(f"✓ Loaded market config: {market.exchange} {market.symbol} {market.timeframe}")
        return market

    except Exception as e:
        logger.error(f"Failed to load market config: {e}")
        raise


# Convenience exports
__all__ = ["MarketConfig", "load_market_config"]
