"""Run and batch outcome models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

from step_executor.models import ActionPlan, ExecutionReport, StepResult


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
# pylint: disable=too-many-instance-attributes
class RunSummary:
    """Top-level outcome of one natural-language test run."""

    success: bool
    description: str
    duration_ms: int
    total_steps: int = 0
    completed_steps: int = 0
    failed_steps: int = 0
    model: Optional[str] = None
    reasoning: Optional[str] = None
    results: Tuple[StepResult, ...] = ()
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=_now)

    @property
    def degraded(self) -> bool:
        return self.error is not None

    @classmethod
    def from_report(
        cls,
        description: str,
        plan: ActionPlan,
        report: ExecutionReport,
        duration_ms: int,
    ) -> "RunSummary":
        return cls(
            success=report.failed_steps == 0,
            description=description,
            duration_ms=duration_ms,
            total_steps=report.total_steps,
            completed_steps=report.completed_steps,
            failed_steps=report.failed_steps,
            model=plan.model,
            reasoning=plan.reasoning,
            results=report.results,
        )

    @classmethod
    def degraded_run(cls, description: str, error: str, steps: int, duration_ms: int) -> "RunSummary":
        """Summary for a run that never reached (or could not finish) execution."""
        return cls(
            success=False,
            description=description,
            duration_ms=duration_ms,
            total_steps=steps,
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.degraded:
            return {
                "success": self.success,
                "description": self.description,
                "error": self.error,
                "steps": self.total_steps,
                "duration_ms": self.duration_ms,
                "timestamp": self.timestamp.isoformat(),
            }
        return {
            "success": self.success,
            "description": self.description,
            "total_steps": self.total_steps,
            "completed_steps": self.completed_steps,
            "failed_steps": self.failed_steps,
            "duration_ms": self.duration_ms,
            "llm_response": {
                "model": self.model,
                "reasoning": self.reasoning,
            },
            "execution_results": [result.to_dict() for result in self.results],
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class BatchSummary:
    """Aggregate over independent runs."""

    total: int
    successful: int
    failed: int
    success_rate: float
    runs: Tuple[RunSummary, ...] = ()

    @classmethod
    def from_runs(cls, runs: Sequence[RunSummary]) -> "BatchSummary":
        total = len(runs)
        successful = sum(1 for run in runs if run.success)
        return cls(
            total=total,
            successful=successful,
            failed=total - successful,
            success_rate=successful / total if total else 0.0,
            runs=tuple(runs),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": self.success_rate,
            "runs": [run.to_dict() for run in self.runs],
        }
