"""Models module - Pydantic data models"""

from .market_data import Candle, IndicatorRecord
from .results import PipelineResult, RunResult, RunStatus, StageReport, StageStatus

__all__ = [
    "Candle",
    "IndicatorRecord",
    "RunResult",
    "RunStatus",
    "StageReport",
    "StageStatus",
    "PipelineResult",
]
