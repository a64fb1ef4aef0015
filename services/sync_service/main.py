"""
Sync Service - Keep the 15m candle table current from the exchange REST API

Scheduled job:
- Startup: full initial load from the listing epoch when the table is empty
- Every interval: update_latest (one page after the newest stored candle)
- Idempotent saves (existing open_times are skipped)
"""

import asyncio
import logging
import os
import signal
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from config.loader import load_market_config
from config.settings import get_settings
from factory.client_factory import (
    create_candle_store,
    create_market_data_source,
    create_timeseries_db,
)
from services.sync_service.rate_limiter import TokenBucketRateLimiter
from services.sync_service.synchronizer import CandleSynchronizer

# Configure logging
os.makedirs("data/logs", exist_ok=True)

_fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_console = logging.StreamHandler(sys.stdout)
_console.setLevel(logging.INFO)
_console.setFormatter(logging.Formatter(_fmt))

_file = RotatingFileHandler(
    "data/logs/sync_service_errors.log",
    maxBytes=5 * 1024 * 1024,  # 5MB
    backupCount=3,
)
_file.setLevel(logging.ERROR)
_file.setFormatter(logging.Formatter(_fmt))

logging.basicConfig(level=logging.INFO, handlers=[_console, _file])
logger = logging.getLogger(__name__)


class SyncService:
    """
    Sync Service - Continuously fetch closed klines into ClickHouse.

    Architecture:
    - Reads the tracked series from market.yaml
    - Rate limiting, retries and back-off from sync.yaml
    - Runs update_latest every interval
    """

    def __init__(self):
        self.settings = get_settings()
        self.market = load_market_config()
        self.running = False
        self.interval_seconds = self.settings.SYNC_INTERVAL_SECONDS

        self.db = create_timeseries_db()
        self.source = create_market_data_source(self.market)
        self.synchronizer = CandleSynchronizer(
            source=self.source,
            candle_store=create_candle_store(self.db),
            rate_limiter=TokenBucketRateLimiter(
                rate=self.settings.SYNC_RATE_LIMIT_PER_SECOND,
                capacity=self.settings.SYNC_RATE_LIMIT_BURST,
            ),
            listing_epoch_ms=self.market.listing_epoch_ms,
            page_limit=self.market.page_limit,
            max_retries=self.settings.SYNC_MAX_RETRIES,
            retry_delay_seconds=self.settings.SYNC_RETRY_DELAY_SECONDS,
        )

    async def start(self):
        """Start the sync service loop"""
        logger.info("=" * 60)
        logger.info("Sync Service started")
        logger.info("=" * 60)
        logger.info(f"  Series: {self.market.exchange} {self.market.symbol} {self.market.timeframe}")
        logger.info(f"  Sync interval: {self.interval_seconds}s")
        logger.info(f"  Rate limit: {self.settings.SYNC_RATE_LIMIT_PER_SECOND} req/s")
        logger.info("=" * 60)

        self.running = True

        try:
            await self.db.connect()
            logger.info("✓ Connected to ClickHouse")

            if await self.synchronizer.get_candle_count() == 0:
                logger.info("🔄 Candle table empty, starting initial load")
                await self.synchronizer.initial_load()

            while self.running:
                start_time = datetime.now(UTC)
                logger.info(f"\n=== Sync cycle started at {start_time} ===")

                result = await self.synchronizer.update_latest()
                logger.info(f"Sync result: {result.status} ({result.processed} saved)")

                elapsed = (datetime.now(UTC) - start_time).total_seconds()
                logger.info(f"=== Sync cycle completed in {elapsed:.2f}s ===\n")

                # Sleep until next cycle
                sleep_time = max(0, self.interval_seconds - elapsed)
                if sleep_time > 0 and self.running:
                    logger.info(f"Sleeping {sleep_time:.1f}s until next sync...")
                    await asyncio.sleep(sleep_time)

        except KeyboardInterrupt:
            logger.info("Received interrupt signal")
        except Exception as e:
            logger.error(f"Error in sync service: {e}", exc_info=True)
        finally:
            await self.stop()

    async def stop(self):
        """Graceful shutdown"""
        logger.info("Stopping Sync Service...")
        self.running = False
        self.synchronizer.interrupt()

        await self.source.close()
        await self.db.close()

        logger.info("Sync Service stopped")


def signal_handler(service):
    """Handle SIGINT/SIGTERM"""

    def handler(signum, frame):
        logger.info(f"Received signal {signum}")
        service.running = False
        service.synchronizer.interrupt()

    return handler


async def main():
    """Main entry point"""
    service = SyncService()

    signal.signal(signal.SIGINT, signal_handler(service))
    signal.signal(signal.SIGTERM, signal_handler(service))

    await service.start()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Goodbye!")
