"""
Error taxonomy for the deployment engine.

- ResolutionError: an expression could not be expanded (configuration defect)
- CompilationError: a declarative node is structurally invalid
- ExecutionError: a step's mutating call failed or returned a failure status
- PreconditionProbeError: a step's read-only probe failed
- ExecutionCancelledError: the run was cancelled at a step boundary or mid-step

Nothing here is retried; every error is fatal to the current run unless the
failing step is explicitly marked as non-fatal.
"""

from __future__ import annotations

from typing import Any


class DeploymentError(Exception):
    """Base class for all errors raised by the deployment engine."""


class ResolutionError(DeploymentError):
    """An expression referenced an ambient value that is not in scope."""


class CompilationError(DeploymentError):
    """A declarative node is structurally invalid, independent of server state."""


class ExecutionCancelledError(DeploymentError):
    """The run was cancelled before it completed."""


class ExecutionError(DeploymentError):
    """
    A step failed against its target instance.

    Attributes
    ----------
    instance_name:
        The instance the failing call was issued against (None if unknown).
    step:
        The step being probed or executed; bound by the runner when the error
        is raised from below the step (e.g. by the server façade).
    diagnostic:
        The underlying server or transport message, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        instance_name: str | None = None,
        step: Any = None,
        diagnostic: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.instance_name = instance_name
        self.step = step
        self.diagnostic = diagnostic

    def bind(self, step: Any) -> ExecutionError:
        """Attach the step (and its instance) if the raiser did not know them."""
        if self.step is None:
            self.step = step
        if self.instance_name is None:
            self.instance_name = getattr(step, "instance_name", None)
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.instance_name:
            parts.append(f"instance={self.instance_name}")
        if self.step is not None:
            parts.append(f"step={type(self.step).__name__}")
        if self.diagnostic:
            parts.append(f"diagnostic={self.diagnostic}")
        return " | ".join(parts)


class PreconditionProbeError(ExecutionError):
    """A step's ShouldExecute probe failed, so its status cannot be determined."""
