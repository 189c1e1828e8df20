"""
Run Runner

Purpose
-------
Drive one deployment run:
  1) compile the whole declarative tree into a `Plan` (before anything executes)
  2) for each step, strictly in plan order:
       - check cancellation
       - probe `should_execute`; False => SKIPPED
       - otherwise `execute` => DONE

Design
------
- Fail-fast: the first failure of a step with `FailurePolicy.FAIL` is raised
  and no later step runs. Effects of earlier steps stay applied; re-running the
  plan is the recovery path.
- Steps with `FailurePolicy.CONTINUE` are logged, recorded as FAILED, and the
  run carries on.
- Unexpected exceptions are wrapped: from a probe into `PreconditionProbeError`,
  from an execution into `ExecutionError`. Cancellation propagates unchanged.
- Nothing is retried.
"""

from __future__ import annotations

from src.sql_deployment.compile.compiler import Compiler, Plan
from src.sql_deployment.context import CompileContext, ExecuteContext
from src.sql_deployment.desired.models import Node
from src.sql_deployment.errors import (
    DeploymentError,
    ExecutionCancelledError,
    ExecutionError,
    PreconditionProbeError,
)
from src.sql_deployment.execute.ports import ExecutionPolicy, RunReport, StepResult, StepStatus
from src.sql_deployment.steps.base import FailurePolicy, Step


class Runner:
    """Compile once, then probe and execute each step in order."""

    def __init__(self, compiler: Compiler | None = None, policy: ExecutionPolicy | None = None) -> None:
        self._compiler = compiler or Compiler()
        self._policy = policy or ExecutionPolicy()

    # ---------- public API ----------

    def run(
        self,
        root: Node,
        compile_context: CompileContext,
        execute_context: ExecuteContext,
    ) -> RunReport:
        """Compile `root` and converge the target; raise on the first fatal failure."""
        plan = self._compile(root, compile_context, execute_context)
        return self.run_plan(plan, execute_context)

    def run_plan(self, plan: Plan, execute_context: ExecuteContext) -> RunReport:
        """Execute an already-compiled plan."""
        logger = execute_context.logger
        total = len(plan.steps)
        results: list[StepResult] = []

        try:
            for index, step in enumerate(plan.steps, start=1):
                execute_context.cancellation.raise_if_cancelled()
                results.append(self._run_step(step, execute_context, f"[{index}/{total}]"))
        except ExecutionCancelledError:
            logger.warning("Run cancelled after %d of %d step(s).", len(results), total)
            raise

        report = RunReport(results=tuple(results))
        logger.info(
            "Run completed: %d executed, %d skipped, %d failed (non-fatal).",
            report.done,
            report.skipped,
            report.failed,
        )
        return report

    # ---------- stages ----------

    def _compile(
        self, root: Node, compile_context: CompileContext, execute_context: ExecuteContext
    ) -> Plan:
        try:
            plan = self._compiler.compile(root, compile_context)
        except DeploymentError as error:
            execute_context.logger.error("Compilation failed: %s", error)
            raise
        execute_context.logger.info("Plan compiled: %d step(s).", len(plan))
        return plan

    def _run_step(self, step: Step, context: ExecuteContext, position: str) -> StepResult:
        logger = context.logger
        try:
            required = self._probe(step, context)
            if not required:
                logger.info("%s Skipping %s: already converged.", position, step.description)
                return StepResult(step=step, status=StepStatus.SKIPPED, message="Already converged")

            if self._policy.dry_run:
                logger.info("%s (dry-run) Would execute %s.", position, step.description)
                return StepResult(
                    step=step, status=StepStatus.SKIPPED, message="(dry-run) would execute"
                )

            logger.info("%s Executing %s.", position, step.description)
            self._execute(step, context)
        except ExecutionError as error:
            if step.failure_policy is FailurePolicy.CONTINUE:
                logger.warning("%s Non-fatal failure in %s: %s", position, step.description, error)
                return StepResult(step=step, status=StepStatus.FAILED, message=str(error))
            logger.error("%s Failed %s: %s", position, step.description, error)
            raise

        logger.info("%s Completed %s.", position, step.description)
        return StepResult(step=step, status=StepStatus.DONE, message="Executed")

    @staticmethod
    def _probe(step: Step, context: ExecuteContext) -> bool:
        try:
            return step.should_execute(context)
        except ExecutionError as error:
            error.bind(step)
            raise
        except DeploymentError:
            raise
        except Exception as error:
            raise PreconditionProbeError(
                f"Precondition check failed: {type(error).__name__}",
                step=step,
                instance_name=step.instance_name,
                diagnostic=str(error),
            ) from error

    @staticmethod
    def _execute(step: Step, context: ExecuteContext) -> None:
        try:
            step.execute(context)
        except ExecutionError as error:
            error.bind(step)
            raise
        except DeploymentError:
            raise
        except Exception as error:
            raise ExecutionError(
                f"Execution failed: {type(error).__name__}",
                step=step,
                instance_name=step.instance_name,
                diagnostic=str(error),
            ) from error
