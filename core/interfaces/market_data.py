"""
Abstract base class for market-data sources

Cloud-agnostic interface for fetching closed candles from an exchange
"""

from abc import ABC, abstractmethod

from core.models.market_data import Candle


class BaseMarketDataSource(ABC):
    """
    Paged candle source for one symbol/timeframe

    Implementations:
    - BinanceRestAPI (providers/binance/rest_api.py)

    Example:
        >>> from providers.binance.rest_api import BinanceRestAPI
        >>>
        >>> source = BinanceRestAPI(symbol="BTC/USDT", timeframe="15m")
        >>> page = await source.fetch_candles(1502942400000)
        >>> print(len(page), page[0].open_time)
        1000 2017-08-17 04:00:00+00:00
        >>> await source.close()
    """

    def __init__(self, exchange_name: str, symbol: str, timeframe: str, page_limit: int):
        """
        Initialize market-data source

        Args:
            exchange_name: Exchange identifier (binance)
            symbol: Unified trading pair (BTC/USDT)
            timeframe: Candle interval (15m)
            page_limit: Maximum candles returned by one request
        """
        self.exchange_name = exchange_name
        self.symbol = symbol
        self.timeframe = timeframe
        self.page_limit = page_limit

    @abstractmethod
    async def fetch_candles(self, since_ms: int | None = None) -> list[Candle]:
        """
        Fetch one page of closed candles

        Args:
            since_ms: Epoch milliseconds of the first open_time wanted,
                      or None for the exchange default (most recent page)

        Returns:
            Candles ordered by open_time ASC, at most page_limit of them

        Raises:
            Exception: On transport or exchange failure (callers retry)
        """

    @abstractmethod
    async def close(self) -> None:
        """Release client resources"""
