"""
Pipeline Orchestrator - Full sync pipeline

Executes strictly in sequence, stopping at the first failure:
1. Sync candles (update_latest, idempotent)
2. Resume indicators (only missing records)
3. Build patterns (resume, never rebuild)
4. Evaluate patterns

The orchestrator owns no data. It observes service counters and
in-progress flags, and reports per-stage counts and elapsed times.
"""

import logging
import time
from collections.abc import Callable

from core.interfaces.patterns import BasePatternStage
from core.models.results import PipelineResult, RunStatus, StageReport, StageStatus
from core.utils.single_flight import SingleFlight
from services.indicator_service.engine import IncrementalIndicatorEngine
from services.sync_service.synchronizer import CandleSynchronizer

logger = logging.getLogger(__name__)

STAGE_CANDLES = "candle_sync"
STAGE_INDICATORS = "indicators"
STAGE_PATTERN_BUILD = "pattern_build"
STAGE_PATTERN_EVALUATION = "pattern_evaluation"

STAGES = [STAGE_CANDLES, STAGE_INDICATORS, STAGE_PATTERN_BUILD, STAGE_PATTERN_EVALUATION]


class PipelineStageError(RuntimeError):
    """A stage precondition or postcondition did not hold"""


def format_duration(ms: int) -> str:
    """
    Human-readable duration

    Example:
        >>> format_duration(850), format_duration(12_300), format_duration(125_000)
        ('850ms', '12.3s', '2m 5s')
    """
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s"
    minutes, remainder = divmod(ms, 60_000)
    return f"{minutes}m {remainder // 1000}s"


class PipelineOrchestrator:
    """
    Run sync → indicators → pattern build → pattern evaluation

    Example:
        >>> orchestrator = PipelineOrchestrator(synchronizer, engine, pattern_stage)
        >>> result = await orchestrator.execute_full_sync(on_progress=print)
        Step 1/4: Syncing candles...
        ...
        >>> print(result.report)
    """

    def __init__(
        self,
        synchronizer: CandleSynchronizer,
        indicator_engine: IncrementalIndicatorEngine,
        pattern_stage: BasePatternStage,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.synchronizer = synchronizer
        self.indicator_engine = indicator_engine
        self.pattern_stage = pattern_stage
        self._clock = clock
        self._latch = SingleFlight("full-sync")

    def is_running(self) -> bool:
        return self._latch.in_progress

    async def execute_full_sync(self, on_progress: Callable[[str], None] | None = None) -> PipelineResult:
        """
        Execute the full pipeline

        Args:
            on_progress: Optional callback invoked with a message at the start
                         of each stage. Errors it raises are logged and ignored.

        Returns:
            PipelineResult; never raises
        """
        if not self._latch.try_acquire():
            logger.warning("Full sync already in progress")
            return PipelineResult(success=False, report="Full sync already in progress",
                                  error="Full sync already in progress")

        total_start = self._clock()
        reports = {name: StageReport(name=name) for name in STAGES}
        lines: list[str] = []

        steps = [
            (STAGE_CANDLES, "Syncing candles", "candles", self._execute_candle_sync),
            (STAGE_INDICATORS, "Calculating indicators", "calculated", self._execute_indicator_resume),
            (STAGE_PATTERN_BUILD, "Building patterns", "built", self._execute_pattern_build),
            (STAGE_PATTERN_EVALUATION, "Evaluating patterns", "evaluated", self._execute_pattern_evaluation),
        ]

        try:
            for number, (name, title, unit, step) in enumerate(steps, start=1):
                logger.info(f"=== FULL SYNC: Step {number}/{len(steps)} - {title} ===")
                self._notify(on_progress, f"Step {number}/{len(steps)}: {title}...")

                stage = reports[name]
                stage_start = self._clock()
                try:
                    count = await step()
                except Exception as e:
                    stage.status = StageStatus.FAILED
                    stage.elapsed_ms = self._elapsed_ms(stage_start)
                    stage.message = str(e)
                    lines.append(
                        f"Step {number}: {title} - FAILED ({format_duration(stage.elapsed_ms)})"
                    )
                    raise

                stage.status = StageStatus.COMPLETED
                stage.count = count
                stage.elapsed_ms = self._elapsed_ms(stage_start)
                lines.append(
                    f"Step {number}: {title} - {count} {unit} ({format_duration(stage.elapsed_ms)})"
                )
                logger.info(
                    f"✓ Step {number} completed: {count} {unit} in "
                    f"{format_duration(stage.elapsed_ms)}"
                )

            total_ms = self._elapsed_ms(total_start)
            lines.append(f"\nTotal time: {format_duration(total_ms)}")
            logger.info(f"✅ FULL SYNC COMPLETED SUCCESSFULLY in {format_duration(total_ms)}")
            return PipelineResult(
                success=True,
                report="\n".join(lines),
                total_time_ms=total_ms,
                stages=list(reports.values()),
            )

        except Exception as e:
            total_ms = self._elapsed_ms(total_start)
            error = f"Full sync failed: {e}"
            lines.append(f"\nFAILED: {e}")
            logger.error(f"❌ FULL SYNC FAILED: {e}", exc_info=True)
            return PipelineResult(
                success=False,
                report="\n".join(lines),
                total_time_ms=total_ms,
                stages=list(reports.values()),
                error=error,
            )

        finally:
            self._latch.release()

    async def _execute_candle_sync(self) -> int:
        if self.synchronizer.is_sync_in_progress():
            raise PipelineStageError("Candle sync already in progress")

        result = await self.synchronizer.update_latest()

        if self.synchronizer.is_sync_in_progress():
            raise PipelineStageError("Candle sync did not complete properly")
        if result.status in (RunStatus.FAILED, RunStatus.ALREADY_IN_PROGRESS):
            raise PipelineStageError(f"Candle sync failed: {result.message}")

        if await self.synchronizer.get_candle_count() == 0:
            raise PipelineStageError("Candle sync failed: no candles in database")

        return result.processed

    async def _execute_indicator_resume(self) -> int:
        if self.indicator_engine.is_calc_in_progress():
            raise PipelineStageError("Indicator calculation already in progress")

        before = await self.indicator_engine.get_indicator_count()
        result = await self.indicator_engine.resume_calculation()

        if self.indicator_engine.is_calc_in_progress():
            raise PipelineStageError("Indicator calculation did not complete properly")
        if result.status in (RunStatus.FAILED, RunStatus.ALREADY_IN_PROGRESS):
            raise PipelineStageError(f"Indicator calculation failed: {result.message}")

        after = await self.indicator_engine.get_indicator_count()
        return after - before

    async def _execute_pattern_build(self) -> int:
        if self.pattern_stage.is_build_in_progress():
            raise PipelineStageError("Pattern build already in progress")

        before = await self.pattern_stage.get_db_pattern_count()
        await self.pattern_stage.resume_pattern_building()

        if self.pattern_stage.is_build_in_progress():
            raise PipelineStageError("Pattern build did not complete properly")

        after = await self.pattern_stage.get_db_pattern_count()
        return after - before

    async def _execute_pattern_evaluation(self) -> int:
        return await self.pattern_stage.evaluate_patterns()

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    @staticmethod
    def _notify(callback: Callable[[str], None] | None, message: str) -> None:
        if callback is None:
            return
        try:
            callback(message)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
