"""
Schema package deployment through the `sqlpackage` command-line tool.

`sqlpackage /Action:Publish` compares the package with the target database and
applies only the difference, so publishing the same package twice converges.
The process is polled so that a cancellation request terminates it.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence

from src import settings
from src.logger import LOGGER
from src.sql_deployment.cancellation import CancellationToken
from src.sql_deployment.errors import ExecutionCancelledError, ExecutionError
from src.sql_deployment.server.ports import PackageDeployment

_MAX_DIAGNOSTIC_LENGTH = 2000


def build_publish_arguments(executable: str, deployment: PackageDeployment) -> list[str]:
    """Render the `sqlpackage` argument vector for a publish."""
    arguments = [
        executable,
        "/Action:Publish",
        f"/SourceFile:{deployment.source_path}",
        f"/TargetServerName:{deployment.instance_name}",
        f"/TargetDatabaseName:{deployment.database_name}",
    ]
    arguments.extend(f"/p:{name}={value}" for name, value in deployment.properties)
    arguments.extend(f"/v:{name}={value}" for name, value in deployment.variables)
    return arguments


class SqlPackageDeployer:
    """`PackageDeployer` that shells out to sqlpackage."""

    def __init__(
        self,
        executable: str = settings.SQLPACKAGE_PATH,
        poll_seconds: float = settings.SQLPACKAGE_POLL_SECONDS,
        extra_arguments: Sequence[str] = (),
    ) -> None:
        self._executable = executable
        self._poll_seconds = poll_seconds
        self._extra_arguments = tuple(extra_arguments)

    def deploy(self, deployment: PackageDeployment, cancellation: CancellationToken) -> None:
        arguments = [*build_publish_arguments(self._executable, deployment), *self._extra_arguments]
        LOGGER.debug("Running %s", " ".join(arguments[:2]))

        try:
            process = subprocess.Popen(
                arguments,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as error:
            raise ExecutionError(
                f"Unable to start {self._executable}.",
                instance_name=deployment.instance_name,
                diagnostic=str(error),
            ) from error

        stdout, stderr = self._wait(process, cancellation)
        if process.returncode != 0:
            output = (stderr or stdout or "").strip()
            raise ExecutionError(
                f"Publishing {deployment.source_path} to {deployment.database_name} failed "
                f"with exit code {process.returncode}.",
                instance_name=deployment.instance_name,
                diagnostic=output[-_MAX_DIAGNOSTIC_LENGTH:],
            )

    def _wait(
        self, process: subprocess.Popen[str], cancellation: CancellationToken
    ) -> tuple[str, str]:
        while True:
            try:
                return process.communicate(timeout=self._poll_seconds)
            except subprocess.TimeoutExpired:
                if cancellation.cancelled:
                    process.kill()
                    process.communicate()
                    raise ExecutionCancelledError(
                        "Deployment run was cancelled while publishing a package."
                    ) from None
