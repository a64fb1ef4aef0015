"""
Run result models

Status values returned by service operations and the pipeline orchestrator.
Nothing in the pipeline raises to the caller; every run returns one of these.
"""

from enum import StrEnum

from pydantic import BaseModel, Field


class RunStatus(StrEnum):
    """Outcome of a single service operation"""

    COMPLETED = "completed"
    ALREADY_IN_PROGRESS = "already_in_progress"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunResult(BaseModel):
    """Result of a sync or indicator operation"""

    status: RunStatus
    processed: int = Field(default=0, description="Candles saved / indicators calculated")
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.SKIPPED)

    @classmethod
    def already_in_progress(cls, what: str) -> "RunResult":
        return cls(status=RunStatus.ALREADY_IN_PROGRESS, message=f"{what} already in progress")


class StageStatus(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_EXECUTED = "not_executed"


class StageReport(BaseModel):
    """One pipeline stage in the run report"""

    name: str
    status: StageStatus = StageStatus.NOT_EXECUTED
    count: int = 0
    elapsed_ms: int = 0
    message: str | None = None


class PipelineResult(BaseModel):
    """
    Full pipeline run outcome

    report is the human-readable, per-stage text (with elapsed times);
    error is set only when the run failed.
    """

    success: bool
    report: str
    total_time_ms: int = 0
    stages: list[StageReport] = Field(default_factory=list)
    error: str | None = None

    def stage(self, name: str) -> StageReport | None:
        return next((s for s in self.stages if s.name == name), None)
