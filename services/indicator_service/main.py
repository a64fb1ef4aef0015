"""
Indicator Service - Scheduled Calculation

Pattern:
- Startup: resume_calculation (fills every missing record, batched)
- Scheduled job: calculate_new_indicators every interval
- Reads candles from ClickHouse (populated by Sync Service)
- Stores one record per candle in the indicators table
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

from config.settings import get_settings
from core.models.results import RunStatus
from factory.client_factory import create_candle_store, create_indicator_store, create_timeseries_db
from services.indicator_service.engine import IncrementalIndicatorEngine

# Configure logging
os.makedirs("data/logs", exist_ok=True)

_fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_console = logging.StreamHandler(sys.stdout)
_console.setLevel(logging.INFO)
_console.setFormatter(logging.Formatter(_fmt))

_file = RotatingFileHandler(
    "data/logs/indicator_service_errors.log",
    maxBytes=5 * 1024 * 1024,  # 5MB
    backupCount=3,
)
_file.setLevel(logging.ERROR)
_file.setFormatter(logging.Formatter(_fmt))

logging.basicConfig(level=logging.INFO, handlers=[_console, _file])
logger = logging.getLogger(__name__)


class IndicatorService:
    """
    Indicator Service - Scheduled calculation from ClickHouse.

    Flow:
    1. Startup resume (batched, picks up after the last stored record)
    2. Every interval: catch up candles newer than the last record
    """

    def __init__(self):
        self.settings = get_settings()
        self.running = False

        # Initialize clients
        logger.info("🔧 Initializing clients...")
        self.db = create_timeseries_db()

        self.engine = IncrementalIndicatorEngine(
            candle_store=create_candle_store(self.db),
            indicator_store=create_indicator_store(self.db),
            batch_size=self.settings.INDICATOR_BATCH_SIZE,
            progress_log_interval=self.settings.INDICATOR_PROGRESS_LOG_INTERVAL,
        )

    async def start(self):
        """Start the indicator service loop"""
        interval = self.settings.INDICATOR_SERVICE_INTERVAL_SECONDS
        initial_delay = self.settings.INDICATOR_SERVICE_INITIAL_DELAY_SECONDS

        logger.info("=" * 60)
        logger.info("Indicator Service started (scheduled mode)")
        logger.info("=" * 60)
        logger.info(f"  Interval: {interval}s (+ {initial_delay}s initial delay)")
        logger.info(f"  Batch size: {self.settings.INDICATOR_BATCH_SIZE}")
        logger.info("=" * 60)

        self.running = True

        try:
            await self.db.connect()
            logger.info("✅ Connected to ClickHouse")

            # Initial delay: wait for Sync Service to write first
            logger.info(f"⏳ Initial {initial_delay}s delay (waiting for Sync Service)...")
            await asyncio.sleep(initial_delay)

            if self.settings.INDICATOR_SERVICE_RESUME_ON_STARTUP:
                result = await self.engine.resume_calculation()
                logger.info(f"Startup resume: {result.status} ({result.processed} calculated)")

            while self.running:
                start_time = datetime.now(UTC)
                logger.info(f"\n=== Indicator calculation started at {start_time} ===")

                result = await self.engine.calculate_new_indicators()
                if result.status == RunStatus.SKIPPED:
                    logger.info(result.message)

                elapsed = (datetime.now(UTC) - start_time).total_seconds()
                logger.info(f"=== Calculation completed in {elapsed:.2f}s ===\n")

                # Sleep until next cycle
                sleep_time = max(0, interval - elapsed)
                if sleep_time > 0 and self.running:
                    logger.info(f"Sleeping {sleep_time:.1f}s until next calculation...")
                    await asyncio.sleep(sleep_time)

        except KeyboardInterrupt:
            logger.info("⚠️ Received interrupt signal")
        except Exception as e:
            logger.error(f"❌ Fatal error: {e}", exc_info=True)
        finally:
            await self.stop()

    async def stop(self):
        """Graceful shutdown"""
        logger.info("🛑 Stopping Indicator Service...")
        self.running = False

        if self.db:
            await self.db.close()

        logger.info("✅ Indicator Service stopped")


def signal_handler(service):
    """Handle SIGINT/SIGTERM"""

    def handler(signum, frame):
        logger.info(f"Received signal {signum}")
        service.running = False

    return handler


async def main():
    """Main entry point"""
    service = IndicatorService()

    signal.signal(signal.SIGINT, signal_handler(service))
    signal.signal(signal.SIGTERM, signal_handler(service))

    await service.start()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Goodbye!")
