"""
Step base classes.

A step is one atomic unit of planned work bound to exactly one instance:

- `should_execute` is a read-only probe of live state. The default is
  "always execute"; variants whose mutating call is not naturally convergent
  must override it.
- `execute` performs one coherent mutation (or a short, related sequence of
  calls) and raises `ExecutionError` on any failure status.
- `failure_policy` says whether a failure aborts the run (`FAIL`) or is logged
  and skipped over (`CONTINUE`).

Steps are frozen: they hold only their construction parameters, open their
own connection per call, and never outlive the run that planned them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from src.sql_deployment.identifiers import format_database_target

if TYPE_CHECKING:
    from src.sql_deployment.context import ExecuteContext


class FailurePolicy(StrEnum):
    FAIL = "fail"  # abort the run
    CONTINUE = "continue"  # log, record FAILED, carry on


@dataclass(frozen=True)
class Step(ABC):
    """Base executable step tied to a single instance."""

    failure_policy: ClassVar[FailurePolicy] = FailurePolicy.FAIL

    instance_name: str

    @property
    def description(self) -> str:
        """One-line summary for log records."""
        return f"{type(self).__name__} on {self.instance_name}"

    def should_execute(self, context: ExecuteContext) -> bool:
        return True

    @abstractmethod
    def execute(self, context: ExecuteContext) -> None: ...


@dataclass(frozen=True)
class DatabaseScopedStep(Step):
    """A step that targets one database on its instance."""

    database_name: str

    @property
    def target(self) -> str:
        return format_database_target(self.instance_name, self.database_name)

    @property
    def description(self) -> str:
        return f"{type(self).__name__} on {self.target}"

    def _database_exists(self, context: ExecuteContext) -> bool:
        """Probe through master; a database-scoped connection to a missing database fails."""
        with context.server(self.instance_name) as server:
            return server.database_exists(self.database_name)
