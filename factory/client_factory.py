"""
Client factory - Auto-create clients based on configuration

Dependency injection pattern: services receive interfaces, this module
decides which implementation backs them.
"""

import logging

from config.loader import MarketConfig, load_market_config
from config.settings import get_settings
from core.interfaces.database import BaseCandleStore, BaseIndicatorStore, BaseTimeSeriesDB
from core.interfaces.market_data import BaseMarketDataSource

logger = logging.getLogger(__name__)


def create_timeseries_db() -> BaseTimeSeriesDB:
    """
    Create time-series database client

    Currently always returns ClickHouseClient

    Returns:
        BaseTimeSeriesDB: ClickHouse client (call connect() before use)
    """
    from providers.opensource.clickhouse import ClickHouseClient

    logger.info("Creating ClickHouseClient")
    return ClickHouseClient()


def create_candle_store(db: BaseTimeSeriesDB) -> BaseCandleStore:
    """
    Create candle store on top of a database client

    Args:
        db: Connected (or soon connected) time-series client

    Returns:
        BaseCandleStore: ClickHouse candle store (table from databases.yaml)
    """
    from providers.opensource.clickhouse import ClickHouseCandleStore

    table = get_settings().CLICKHOUSE_CANDLE_TABLE
    logger.info(f"✓ Creating ClickHouseCandleStore ({table})")
    return ClickHouseCandleStore(db, table)


def create_indicator_store(db: BaseTimeSeriesDB) -> BaseIndicatorStore:
    """
    Create indicator store on top of a database client

    Args:
        db: Connected (or soon connected) time-series client

    Returns:
        BaseIndicatorStore: ClickHouse indicator store (table from databases.yaml)
    """
    from providers.opensource.clickhouse import ClickHouseIndicatorStore

    table = get_settings().CLICKHOUSE_INDICATOR_TABLE
    logger.info(f"✓ Creating ClickHouseIndicatorStore ({table})")
    return ClickHouseIndicatorStore(db, table)


def create_market_data_source(market: MarketConfig | None = None) -> BaseMarketDataSource:
    """
    Factory method for the exchange candle source.

    Industry standard: Use REST API for authoritative OHLCV/klines data.

    Args:
        market: Market config (default: config/providers/market.yaml)

    Returns:
        BaseMarketDataSource implementation for the configured exchange

    Examples:
        >>> source = create_market_data_source()
        >>> candles = await source.fetch_candles(1502942400000)
        >>> await source.close()

    Raises:
        ValueError: If the exchange is not supported
    """
    market = market or load_market_config()
    exchange_lower = market.exchange.lower()

    if exchange_lower == "binance":
        from providers.binance.rest_api import BinanceRestAPI

        logger.info(f"✓ Creating BinanceRestAPI ({market.symbol} {market.timeframe})")
        return BinanceRestAPI(
            symbol=market.symbol, timeframe=market.timeframe, page_limit=market.page_limit
        )

    raise ValueError(f"Unknown exchange: {market.exchange}. Supported: binance")
