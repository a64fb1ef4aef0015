"""
Incremental Indicator Engine - Resumable, memory-bounded indicator computation

Walks the candle series in chronological order and persists one
IndicatorRecord per candle that has a full 201-candle window.

Modes:
- calculate_new_indicators: catch-up after the last persisted record
- resume_calculation: batched walk from the last record (or the first candle)
- recalculate_all: bulk delete, then resume from the beginning

EMA continuation state is always re-derived from the last persisted record,
so an interrupted run resumed later produces exactly the same records as an
uninterrupted one.
"""

import logging
from datetime import datetime

from core.interfaces.database import BaseCandleStore, BaseIndicatorStore
from core.models.market_data import Candle, IndicatorRecord
from core.models.results import RunResult, RunStatus
from core.utils.single_flight import SingleFlight
from services.indicator_service.calculator import EmaState, IndicatorCalculator

logger = logging.getLogger(__name__)

LOOKBACK_WINDOW = 200
MIN_CANDLES_REQUIRED = LOOKBACK_WINDOW + 1
DEFAULT_BATCH_SIZE = 1000
DEFAULT_LOG_INTERVAL = 100


class IncrementalIndicatorEngine:
    """
    Indicator calculation over the stored candle series

    All three entry points share one single-flight latch; a concurrent call
    returns ALREADY_IN_PROGRESS immediately.

    Example:
        >>> engine = IncrementalIndicatorEngine(candle_store, indicator_store)
        >>> result = await engine.resume_calculation()
        >>> print(result.status, result.processed)
        completed 1834
    """

    def __init__(
        self,
        candle_store: BaseCandleStore,
        indicator_store: BaseIndicatorStore,
        calculator: IndicatorCalculator | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress_log_interval: int = DEFAULT_LOG_INTERVAL,
    ):
        """
        Initialize engine

        Args:
            candle_store: Source of candles (read only)
            indicator_store: Destination of indicator records
            calculator: Indicator set (default: EMA50/200, RSI14, ATR14, BB20, AvgVol20)
            batch_size: Candles loaded per resume batch
            progress_log_interval: Log progress every N records

        Raises:
            ValueError: If batch_size or progress_log_interval is not positive
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if progress_log_interval <= 0:
            raise ValueError(f"progress_log_interval must be positive, got {progress_log_interval}")

        self.candle_store = candle_store
        self.indicator_store = indicator_store
        self.calculator = calculator or IndicatorCalculator()
        self.batch_size = batch_size
        self.progress_log_interval = progress_log_interval
        self._latch = SingleFlight("indicator-calc")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def calculate_new_indicators(self) -> RunResult:
        """
        Catch-up: compute records for candles after the last indicator

        No-op (SKIPPED) when no indicator exists yet; run resume or rebuild first.
        """
        if not self._latch.try_acquire():
            logger.info("Calculation already in progress")
            return RunResult.already_in_progress("Indicator calculation")

        try:
            last_time = await self.indicator_store.find_max_open_time()
            if last_time is None:
                logger.info("No indicators exist, run resume or rebuild first")
                return RunResult(
                    status=RunStatus.SKIPPED,
                    message="No indicators exist, run resume or rebuild first",
                )

            candles = await self.candle_store.find_candles_after(last_time)
            if not candles:
                logger.debug("No new candles to process")
                return RunResult(status=RunStatus.COMPLETED)

            logger.info(f"Processing {len(candles)} new candles")
            state = EmaState.from_record(await self.indicator_store.find_by_id(last_time))
            calculated, _ = await self._process_candles(candles, state, log_progress=False)

            if calculated:
                logger.info(f"✓ Calculated {calculated} new indicators")
            return RunResult(status=RunStatus.COMPLETED, processed=calculated)

        except Exception as e:
            logger.error(f"❌ Error calculating indicators: {e}", exc_info=True)
            return RunResult(status=RunStatus.FAILED, message=str(e))
        finally:
            self._latch.release()

    async def resume_calculation(self) -> RunResult:
        """
        Resume from the last persisted indicator (no delete)

        Starts from the first candle when no indicator exists.
        """
        if not self._latch.try_acquire():
            logger.warning("Calculation already in progress")
            return RunResult.already_in_progress("Indicator calculation")

        try:
            logger.info("🔄 Resuming indicator calculation...")
            last_time = await self.indicator_store.find_max_open_time()
            if last_time is None:
                logger.info("No indicators found, starting from beginning")
            else:
                logger.info(f"Resuming from: {last_time}")

            total = await self._resume_from(last_time)
            logger.info(f"✅ Resume completed. Calculated: {total}")
            return RunResult(status=RunStatus.COMPLETED, processed=total)

        except Exception as e:
            logger.error(f"❌ Error during resume: {e}", exc_info=True)
            return RunResult(status=RunStatus.FAILED, message=str(e))
        finally:
            self._latch.release()

    async def recalculate_all(self) -> RunResult:
        """Full rebuild: delete every indicator, then compute from the first candle"""
        if not self._latch.try_acquire():
            logger.warning("Calculation already in progress")
            return RunResult.already_in_progress("Indicator calculation")

        try:
            logger.info("🔄 Starting full indicator recalculation...")
            await self.indicator_store.delete_all()
            logger.info("Cleared existing indicators")

            total = await self._resume_from(None)
            logger.info(f"✅ Recalculation completed. Total indicators: {total}")
            return RunResult(status=RunStatus.COMPLETED, processed=total)

        except Exception as e:
            logger.error(f"❌ Error during recalculation: {e}", exc_info=True)
            return RunResult(status=RunStatus.FAILED, message=str(e))
        finally:
            self._latch.release()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def is_calc_in_progress(self) -> bool:
        return self._latch.in_progress

    async def get_indicator_count(self) -> int:
        return await self.indicator_store.count()

    async def get_latest_indicator_time(self) -> datetime | None:
        return await self.indicator_store.find_max_open_time()

    async def get_latest_indicator(self) -> IndicatorRecord | None:
        return await self.indicator_store.find_latest()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _resume_from(self, last_time: datetime | None) -> int:
        """
        Batched walk over candles strictly after last_time

        After every batch the EMA state is re-read from the last persisted
        record, so the next batch continues from storage rather than memory.
        """
        state = await self._load_state(last_time)
        cursor = last_time
        total = 0
        batch_number = 0

        while True:
            if cursor is None:
                batch = await self.candle_store.find_first_n_candles(self.batch_size)
            else:
                batch = await self.candle_store.find_candles_after_limit(cursor, self.batch_size)

            if not batch:
                break

            batch_number += 1
            calculated, _ = await self._process_candles(batch, state, log_progress=True)
            total += calculated
            logger.info(
                f"Batch {batch_number}: {len(batch)} candles, {calculated} calculated "
                f"(total {total})"
            )

            cursor = batch[-1].open_time
            state = await self._load_state(await self.indicator_store.find_max_open_time())

            if len(batch) < self.batch_size:
                break

        return total

    async def _load_state(self, open_time: datetime | None) -> EmaState:
        if open_time is None:
            return EmaState()
        return EmaState.from_record(await self.indicator_store.find_by_id(open_time))

    async def _process_candles(
        self, candles: list[Candle], state: EmaState, log_progress: bool
    ) -> tuple[int, EmaState]:
        """
        Process candles in order, persisting one record per eligible candle

        Returns:
            (records persisted, EMA state after the last persisted record)

        Raises:
            Exception: Store failures propagate (the run fails, persisted
                       records are kept and a later resume continues)
        """
        calculated = 0
        total = len(candles)

        for i, candle in enumerate(candles):
            record = await self._process_candle(candle, state)
            if record is None:
                continue

            await self.indicator_store.save(record)
            state = EmaState.from_record(record)
            calculated += 1

            if log_progress and calculated % self.progress_log_interval == 0:
                logger.info(f"Progress: {i + 1}/{total} ({calculated} calculated)")

        return calculated, state

    async def _process_candle(self, candle: Candle, state: EmaState) -> IndicatorRecord | None:
        """
        Build the record for one candle, or None if it must be skipped

        Skipped when fewer than MIN_CANDLES_REQUIRED candles exist at or
        before it. A calculation error is logged and also yields None.
        """
        window = await self.candle_store.find_last_n_candles(
            candle.open_time, MIN_CANDLES_REQUIRED
        )
        if len(window) < MIN_CANDLES_REQUIRED:
            logger.debug(
                f"Not enough candles for {candle.open_time}, skipping "
                f"(have {len(window)}, need {MIN_CANDLES_REQUIRED})"
            )
            return None

        # Store returns newest first
        window.reverse()

        try:
            return self.calculator.build_indicator(window, state)
        except Exception as e:
            logger.error(f"✗ Error calculating indicators for {candle.open_time}: {e}")
            return None
