"""
Binance REST API client for fetching closed 15m klines.

Uses ccxt library for unified exchange interface.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal

import ccxt.async_support as ccxt

from config.settings import get_settings
from core.interfaces.market_data import BaseMarketDataSource
from core.models.market_data import Candle
from core.utils.timeframe import close_time_for, millis_to_datetime

logger = logging.getLogger(__name__)


class BinanceRestAPI(BaseMarketDataSource):
    """
    Binance REST API client for authoritative klines/OHLCV data.

    Only closed candles are returned: the still-forming last kline that
    Binance includes in every response is dropped.

    Uses ccxt library for:
    - Unified interface across exchanges
    - Symbol mapping (BTC/USDT → BTCUSDT)
    """

    def __init__(self, symbol: str = "BTC/USDT", timeframe: str = "15m", page_limit: int = 1000):
        super().__init__(
            exchange_name="binance", symbol=symbol, timeframe=timeframe, page_limit=page_limit
        )
        settings = get_settings()

        self.client = ccxt.binance(
            {
                "enableRateLimit": settings.REST_API_ENABLE_RATE_LIMIT,
                "timeout": settings.REST_API_TIMEOUT_MS,
            }
        )
        logger.info(f"BinanceRestAPI initialized ({symbol} {timeframe})")

    async def fetch_candles(self, since_ms: int | None = None) -> list[Candle]:
        """
        Fetch one page of klines from Binance REST API.

        Args:
            since_ms: First open time wanted (epoch ms), or None for the latest page

        Returns:
            List of closed Candle objects, oldest first
        """
        try:
            ohlcv = await self.client.fetch_ohlcv(
                self.symbol, self.timeframe, since=since_ms, limit=self.page_limit
            )
        except Exception as e:
            logger.error(f"Failed to fetch klines for {self.symbol} {self.timeframe}: {e}")
            raise

        now = datetime.now(UTC)
        candles = []
        for row in ohlcv:
            candle = self._to_candle(row)
            if candle.close_time > now:
                break
            candles.append(candle)

        logger.debug(
            f"Fetched {len(candles)} klines for {self.symbol} {self.timeframe} (since={since_ms})"
        )
        return candles

    def _to_candle(self, row: list) -> Candle:
        timestamp_ms, open_, high, low, close, volume = row[:6]
        open_time = millis_to_datetime(int(timestamp_ms))

        return Candle(
            open_time=open_time,
            open_price=Decimal(str(open_)),
            high_price=Decimal(str(high)),
            low_price=Decimal(str(low)),
            close_price=Decimal(str(close)),
            volume=Decimal(str(volume)),
            close_time=close_time_for(open_time, self.timeframe),
        )

    async def close(self) -> None:
        """Close ccxt client"""
        await self.client.close()
        logger.info("BinanceRestAPI closed")
