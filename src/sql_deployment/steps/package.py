"""Schema package deployment step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.sql_deployment.errors import ExecutionError
from src.sql_deployment.server.ports import PackageDeployment
from src.sql_deployment.steps.base import DatabaseScopedStep

if TYPE_CHECKING:
    from src.sql_deployment.context import ExecuteContext


@dataclass(frozen=True)
class DatabasePackageStep(DatabaseScopedStep):
    """
    Publish a `.dacpac` to the database.

    No precondition: publishing diffs the package against the live schema and
    applies only what is missing, so repeating it is safe.
    """

    source_path: str
    properties: tuple[tuple[str, str], ...] = ()
    variables: tuple[tuple[str, str], ...] = ()

    def execute(self, context: ExecuteContext) -> None:
        if context.package_deployer is None:
            raise ExecutionError(
                "No package deployer is configured for this run.",
                instance_name=self.instance_name,
                step=self,
            )
        context.logger.info("Publishing package %s to %s.", self.source_path, self.target)
        context.package_deployer.deploy(
            PackageDeployment(
                instance_name=self.instance_name,
                database_name=self.database_name,
                source_path=self.source_path,
                properties=self.properties,
                variables=self.variables,
            ),
            context.cancellation,
        )
