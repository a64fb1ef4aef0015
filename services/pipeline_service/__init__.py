"""
Pipeline Service - Full sync orchestration

Runs candle sync, indicator resume, pattern build and pattern evaluation
strictly in sequence.
"""

from services.pipeline_service.orchestrator import (
    PipelineOrchestrator,
    PipelineStageError,
    format_duration,
)

__all__ = ["PipelineOrchestrator", "PipelineStageError", "format_duration"]
