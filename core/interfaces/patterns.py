"""
Abstract interface for the downstream pattern stage

The pipeline orchestrator only calls these methods and never inspects
pattern internals (matching, scoring and alerting live elsewhere).
"""

from abc import ABC, abstractmethod


class BasePatternStage(ABC):
    """Pattern build + evaluation stage driven by the pipeline"""

    @abstractmethod
    def is_build_in_progress(self) -> bool:
        """True while a pattern build holds its single-flight latch"""

    @abstractmethod
    async def get_db_pattern_count(self) -> int:
        """Number of stored patterns"""

    @abstractmethod
    async def resume_pattern_building(self) -> None:
        """Build patterns for indicators that have none yet (idempotent)"""

    @abstractmethod
    async def evaluate_patterns(self) -> int:
        """Evaluate matured patterns; returns how many were evaluated"""
