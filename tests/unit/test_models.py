"""
Unit tests for core models (Pydantic)

Tests Candle, IndicatorRecord and run result models
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from core.models.market_data import Candle, IndicatorRecord
from core.models.results import (
    PipelineResult,
    RunResult,
    RunStatus,
    StageReport,
    StageStatus,
)

OPEN_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def create_candle(**overrides) -> Candle:
    fields = {
        "open_time": OPEN_TIME,
        "open_price": Decimal("42000.10000000"),
        "high_price": Decimal("42100.00000000"),
        "low_price": Decimal("41950.50000000"),
        "close_price": Decimal("42050.25000000"),
        "volume": Decimal("123.45678900"),
        "close_time": OPEN_TIME + timedelta(minutes=15) - timedelta(milliseconds=1),
    }
    fields.update(overrides)
    return Candle(**fields)


@pytest.mark.unit
class TestCandleModel:
    """Test Candle validation and serialization"""

    def test_valid_candle_creation(self):
        candle = create_candle()

        assert candle.close_price == Decimal("42050.25")
        assert candle.close_time - candle.open_time == timedelta(minutes=15, milliseconds=-1)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            create_candle(low_price=Decimal("-1"))

    def test_negative_volume_rejected(self):
        with pytest.raises(ValidationError):
            create_candle(volume=Decimal("-0.1"))

    def test_candle_is_immutable(self):
        candle = create_candle()

        with pytest.raises(ValidationError):
            candle.close_price = Decimal("1")

    def test_to_row_column_order(self):
        candle = create_candle()

        assert candle.to_row() == (
            candle.open_time,
            candle.open_price,
            candle.high_price,
            candle.low_price,
            candle.close_price,
            candle.volume,
            candle.close_time,
        )


@pytest.mark.unit
class TestIndicatorRecord:
    """Test IndicatorRecord defaults and serialization"""

    def test_all_fields_nullable(self):
        record = IndicatorRecord(open_time=OPEN_TIME)

        assert record.ema50 is None
        assert record.rsi14 is None
        assert record.to_row() == (OPEN_TIME, None, None, None, None, None, None, None, None)

    def test_to_row_column_order(self):
        record = IndicatorRecord(
            open_time=OPEN_TIME,
            ema50=Decimal("1"),
            ema200=Decimal("2"),
            rsi14=Decimal("3"),
            atr14=Decimal("4"),
            bb_upper=Decimal("5"),
            bb_middle=Decimal("6"),
            bb_lower=Decimal("7"),
            avg_volume20=Decimal("8"),
        )

        assert record.to_row() == (OPEN_TIME, *(Decimal(i) for i in range(1, 9)))


@pytest.mark.unit
class TestResults:
    """Test run result helpers"""

    def test_already_in_progress(self):
        result = RunResult.already_in_progress("Candle sync")

        assert result.status == RunStatus.ALREADY_IN_PROGRESS
        assert result.message == "Candle sync already in progress"
        assert result.ok is False

    def test_ok_statuses(self):
        assert RunResult(status=RunStatus.COMPLETED).ok
        assert RunResult(status=RunStatus.SKIPPED).ok
        assert not RunResult(status=RunStatus.FAILED).ok

    def test_status_string_values(self):
        assert RunStatus.ALREADY_IN_PROGRESS == "already_in_progress"
        assert StageStatus.NOT_EXECUTED == "not_executed"

    def test_pipeline_result_stage_lookup(self):
        result = PipelineResult(
            success=True,
            report="",
            stages=[StageReport(name="candle_sync", status=StageStatus.COMPLETED, count=3)],
        )

        assert result.stage("candle_sync").count == 3
        assert result.stage("missing") is None
