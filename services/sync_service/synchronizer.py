"""
Candle Synchronizer - Paged candle download from the exchange REST API

Responsibilities:
- initial_load: page forward from the listing epoch until caught up
- update_latest: fetch one page after the newest stored candle
- Retries with fixed back-off, self rate limiting, idempotent saves

Transient failures never escape: after the last retry a fetch yields an
empty page, which callers read as "no more data right now".
"""

import asyncio
import logging
from datetime import datetime

from core.interfaces.database import BaseCandleStore
from core.interfaces.market_data import BaseMarketDataSource
from core.models.market_data import Candle
from core.models.results import RunResult, RunStatus
from core.utils.single_flight import SingleFlight
from core.utils.timeframe import datetime_to_millis, timeframe_to_millis
from core.validators.market_data import CandleValidator
from services.sync_service.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)

BTCUSDT_LISTING_EPOCH_MS = 1502942400000  # 2017-08-17 04:00 UTC
DEFAULT_PAGE_LIMIT = 1000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 5.0
PROGRESS_LOG_BATCHES = 10


class CandleSynchronizer:
    """
    Sync candles from a market-data source into the candle store

    initial_load and update_latest share one single-flight latch.

    Example:
        >>> sync = CandleSynchronizer(source, candle_store)
        >>> result = await sync.update_latest()
        >>> print(result.processed)
        3
    """

    def __init__(
        self,
        source: BaseMarketDataSource,
        candle_store: BaseCandleStore,
        rate_limiter: TokenBucketRateLimiter | None = None,
        validator: CandleValidator | None = None,
        listing_epoch_ms: int = BTCUSDT_LISTING_EPOCH_MS,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS,
    ):
        """
        Initialize synchronizer

        Args:
            source: Exchange candle source (one symbol/timeframe)
            candle_store: Destination store
            rate_limiter: Request limiter (default 10 req/s)
            validator: Candle validator (default: source timeframe)
            listing_epoch_ms: First open_time fetched by initial_load
            page_limit: Page size; a shorter page means caught up
            max_retries: Attempts per page fetch
            retry_delay_seconds: Fixed back-off between attempts
        """
        if max_retries <= 0:
            raise ValueError(f"max_retries must be positive, got {max_retries}")

        self.source = source
        self.candle_store = candle_store
        self.rate_limiter = rate_limiter or TokenBucketRateLimiter(rate=10.0)
        self.validator = validator or CandleValidator(source.timeframe)
        self.listing_epoch_ms = listing_epoch_ms
        self.page_limit = page_limit
        self.interval_ms = timeframe_to_millis(source.timeframe)
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

        self._latch = SingleFlight("candle-sync")
        self._interrupted = asyncio.Event()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def initial_load(self) -> RunResult:
        """
        Full history load from the listing epoch

        Stops on an empty page or a page shorter than page_limit.
        """
        if not self._latch.try_acquire():
            logger.warning("Sync already in progress, skipping initial load")
            return RunResult.already_in_progress("Candle sync")

        try:
            logger.info(
                f"🔄 Starting full initial load from {self.listing_epoch_ms} "
                f"({self.source.symbol} {self.source.timeframe})"
            )
            start_ms = self.listing_epoch_ms
            total_saved = 0
            batch_count = 0

            while True:
                candles = await self._fetch_with_retry(start_ms)
                if not candles:
                    logger.info("No more candles to fetch")
                    break

                total_saved += await self.save_candles(candles)
                batch_count += 1

                last = candles[-1]
                start_ms = datetime_to_millis(last.open_time) + self.interval_ms

                if batch_count % PROGRESS_LOG_BATCHES == 0:
                    logger.info(
                        f"Progress: {batch_count} batches, {total_saved} candles saved, "
                        f"last: {last.open_time}"
                    )

                if len(candles) < self.page_limit:
                    logger.info("Reached latest available candle")
                    break

            logger.info(
                f"✅ Initial load completed. Batches: {batch_count}, saved: {total_saved}"
            )
            return RunResult(status=RunStatus.COMPLETED, processed=total_saved)

        except Exception as e:
            logger.error(f"❌ Error during initial load: {e}", exc_info=True)
            return RunResult(status=RunStatus.FAILED, message=str(e))
        finally:
            self._latch.release()

    async def update_latest(self) -> RunResult:
        """Fetch one page just after the newest stored candle (or the source default)"""
        if not self._latch.try_acquire():
            logger.warning("Sync already in progress, skipping update")
            return RunResult.already_in_progress("Candle sync")

        try:
            since_ms = None
            max_open_time = await self.candle_store.find_max_open_time()
            if max_open_time is not None:
                since_ms = datetime_to_millis(max_open_time) + 1
                logger.info(f"Fetching candles after: {max_open_time}")

            candles = await self._fetch_with_retry(since_ms)
            if not candles:
                logger.info("No new candles available")
                return RunResult(status=RunStatus.COMPLETED)

            saved = await self.save_candles(candles)
            logger.info(f"✓ Updated {saved} new candles")
            return RunResult(status=RunStatus.COMPLETED, processed=saved)

        except Exception as e:
            logger.error(f"❌ Error updating latest candles: {e}", exc_info=True)
            return RunResult(status=RunStatus.FAILED, message=str(e))
        finally:
            self._latch.release()

    def interrupt(self) -> None:
        """Abort any pending retry back-off (the fetch returns no data)"""
        self._interrupted.set()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def is_sync_in_progress(self) -> bool:
        return self._latch.in_progress

    async def get_candle_count(self) -> int:
        return await self.candle_store.count()

    async def get_latest_candle_time(self) -> datetime | None:
        return await self.candle_store.find_max_open_time()

    async def get_earliest_candle_time(self) -> datetime | None:
        return await self.candle_store.find_min_open_time()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch_with_retry(self, since_ms: int | None) -> list[Candle]:
        """
        Fetch one page with retries

        An empty page on a non-final attempt is treated as transient.
        Returns [] once retries are exhausted or the back-off is interrupted.
        """
        for attempt in range(1, self.max_retries + 1):
            await self.rate_limiter.acquire()
            try:
                candles = await self.source.fetch_candles(since_ms)
                if candles or attempt == self.max_retries:
                    return candles
                logger.warning(f"Empty response, retry {attempt}/{self.max_retries}")
            except Exception as e:
                logger.warning(f"✗ Fetch failed (attempt {attempt}/{self.max_retries}): {e}")
                if attempt == self.max_retries:
                    logger.error("❌ Max retries reached, returning empty page")
                    return []

            if await self._backoff_interrupted():
                logger.warning("Retry back-off interrupted, returning empty page")
                return []

        return []

    async def _backoff_interrupted(self) -> bool:
        try:
            await asyncio.wait_for(self._interrupted.wait(), timeout=self.retry_delay_seconds)
        except TimeoutError:
            return False
        return True

    async def save_candles(self, candles: list[Candle]) -> int:
        """
        Save candles that are not stored yet

        Existing open_times are skipped (never overwritten). Invalid candles
        and per-candle store errors are logged and skipped.

        Returns:
            Number of candles saved
        """
        saved = 0

        for candle in candles:
            is_valid, error = self.validator.validate_candle(candle)
            if not is_valid:
                logger.warning(f"⚠️ Skipping invalid candle: {error}")
                continue

            try:
                if await self.candle_store.exists(candle.open_time):
                    continue
                await self.candle_store.save(candle)
                saved += 1
            except Exception as e:
                logger.error(f"✗ Error saving candle {candle.open_time}: {e}")

        return saved
