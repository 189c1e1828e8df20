"""
High-level entry point for a deployment run.

`Orchestrator` seeds both contexts and hands the tree to the `Runner`:
  1) CompileContext with the target instance and any variables
  2) ExecuteContext with the connection factory, logger, cancellation signal,
     package deployer and (optionally) directory access
  3) compile and run; the first fatal failure bubbles up to the caller
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from src.logger import LOGGER
from src.sql_deployment.cancellation import CancellationToken
from src.sql_deployment.context import CompileContext, ExecuteContext
from src.sql_deployment.desired.models import Node
from src.sql_deployment.execute.ports import RunReport
from src.sql_deployment.execute.runner import Runner
from src.sql_deployment.server.ports import ConnectionFactory, DirectoryAccess, PackageDeployer
from src.sql_deployment.server.sqlpackage import SqlPackageDeployer


class Orchestrator:
    """Coordinates context construction and the compile/execute run."""

    def __init__(
        self,
        connections: ConnectionFactory,
        runner: Runner | None = None,
        package_deployer: PackageDeployer | None = None,
        directory_access: DirectoryAccess | None = None,
        logger: logging.Logger = LOGGER,
    ) -> None:
        """
        Initialize the orchestrator.

        Custom components can be injected for testing or alternate implementations.
        """
        self.connections = connections
        self.runner: Runner = runner or Runner()
        self.package_deployer: PackageDeployer = package_deployer or SqlPackageDeployer()
        self.directory_access = directory_access
        self.logger = logger

    def deploy(
        self,
        root: Node,
        instance_name: str | None = None,
        variables: Mapping[str, str] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> RunReport:
        """Converge `instance_name` (or the instance named by `root`) towards `root`."""
        compile_context = CompileContext(instance_name=instance_name, variables=variables or {})
        execute_context = ExecuteContext(
            connections=self.connections,
            logger=self.logger,
            cancellation=cancellation or CancellationToken(),
            package_deployer=self.package_deployer,
            directory_access=self.directory_access,
        )

        self.logger.info("Starting deployment to %s.", instance_name or "declared instance")
        report = self.runner.run(root, compile_context, execute_context)
        self.logger.info("Deployment completed.")
        return report
