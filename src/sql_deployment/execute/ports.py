"""
Execution policy and result types.

- ExecutionPolicy: toggles for dry-run
- StepStatus / StepResult / RunReport: structured outcomes to log or surface upstream
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from src.sql_deployment.steps.base import Step


class StepStatus(StrEnum):
    DONE = "done"
    SKIPPED = "skipped"  # already converged, or dry-run
    FAILED = "failed"  # only recorded for non-fatal steps; fatal failures raise


@dataclass(frozen=True)
class ExecutionPolicy:
    """Controls how the runner behaves."""

    dry_run: bool = False


@dataclass(frozen=True)
class StepResult:
    """Outcome for a single step."""

    step: Step
    status: StepStatus
    message: str


@dataclass(frozen=True)
class RunReport:
    """Outcome for a whole run, in plan order."""

    results: tuple[StepResult, ...]

    def _count(self, status: StepStatus) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def done(self) -> int:
        return self._count(StepStatus.DONE)

    @property
    def skipped(self) -> int:
        return self._count(StepStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(StepStatus.FAILED)

    @property
    def ok(self) -> bool:
        return self.failed == 0
