"""
Steps that configure an instance as a replication distributor.

Planned in this order for one `Distributor` node:
  1) DistributorStep             register the distributor, its database, and itself as publisher
  2) DistributionDatabaseStep    converge retention settings
  3) DistributorPasswordStep     reset the admin password (only when declared)
  4) SnapshotFolderStep          record the snapshot folder
  5) DistributorDirectoryAclStep grant the agent account access (non-fatal)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.sql_deployment.identifiers import qualify_unc_host
from src.sql_deployment.server.commands import DistributionDatabaseInfo, ServerCommands
from src.sql_deployment.steps.base import FailurePolicy, Step

if TYPE_CHECKING:
    from src.sql_deployment.context import ExecuteContext


@dataclass(frozen=True)
class DistributorStep(Step):
    """
    Register the instance as its own distributor.

    Runs only while no distributor is registered. Each call is still guarded,
    and a partially configured distributor is finished by
    `DistributionDatabaseStep` and `PublisherStep`.
    """

    database_name: str
    admin_password: str | None = field(default=None, repr=False)
    data_path: str | None = None
    logs_path: str | None = None
    log_file_size: int | None = None
    minimum_retention: int | None = None
    maximum_retention: int | None = None
    history_retention: int | None = None

    def should_execute(self, context: ExecuteContext) -> bool:
        with context.server(self.instance_name) as server:
            return server.get_distributor_name() is None

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name) as server:
            server_name = server.get_server_name()

            if server.get_distributor_name() is None:
                context.logger.info("Creating distributor on %s.", self.instance_name)
                server.add_distributor(server_name, self.admin_password)

            context.cancellation.raise_if_cancelled()
            if server.get_distribution_database(self.database_name) is None:
                context.logger.info(
                    "Adding distribution database %s on %s.", self.database_name, self.instance_name
                )
                server.add_distribution_database(
                    self.database_name,
                    minimum_retention=self.minimum_retention,
                    maximum_retention=self.maximum_retention,
                    history_retention=self.history_retention,
                    data_folder=self.data_path,
                    log_folder=self.logs_path,
                    log_file_size=self.log_file_size,
                )

            context.cancellation.raise_if_cancelled()
            if not server.is_distribution_publisher(server_name):
                context.logger.info(
                    "Enabling %s as a publisher using %s.", server_name, self.database_name
                )
                server.add_distribution_publisher(server_name, self.database_name)


@dataclass(frozen=True)
class DistributionDatabaseStep(Step):
    """Create the distribution database if missing, otherwise converge its retention."""

    database_name: str
    minimum_retention: int | None = None
    maximum_retention: int | None = None
    history_retention: int | None = None
    data_path: str | None = None
    logs_path: str | None = None
    log_file_size: int | None = None

    def _drift(self, current: DistributionDatabaseInfo) -> list[tuple[str, int]]:
        """(property, desired value) for every declared setting that differs."""
        wanted = (
            ("min_distretention", self.minimum_retention, current.minimum_retention),
            ("max_distretention", self.maximum_retention, current.maximum_retention),
            ("history_retention", self.history_retention, current.history_retention),
        )
        return [
            (property_name, desired)
            for property_name, desired, actual in wanted
            if desired is not None and desired != actual
        ]

    def should_execute(self, context: ExecuteContext) -> bool:
        with context.server(self.instance_name) as server:
            current = server.get_distribution_database(self.database_name)
        return current is None or bool(self._drift(current))

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name) as server:
            current = server.get_distribution_database(self.database_name)
            if current is None:
                context.logger.info(
                    "Adding distribution database %s on %s.", self.database_name, self.instance_name
                )
                server.add_distribution_database(
                    self.database_name,
                    minimum_retention=self.minimum_retention,
                    maximum_retention=self.maximum_retention,
                    history_retention=self.history_retention,
                    data_folder=self.data_path,
                    log_folder=self.logs_path,
                    log_file_size=self.log_file_size,
                )
                return

            changes = self._drift(current)
            if (
                self.minimum_retention is not None
                and current.maximum_retention is not None
                and self.minimum_retention > current.maximum_retention
            ):
                # the server rejects a minimum above the current maximum
                changes.sort(key=lambda change: change[0] != "max_distretention")

            for property_name, value in changes:
                context.logger.info(
                    "Setting %s=%s on distribution database %s on %s.",
                    property_name,
                    value,
                    self.database_name,
                    self.instance_name,
                )
                server.change_distribution_database(self.database_name, property_name, value)


@dataclass(frozen=True)
class DistributorPasswordStep(Step):
    """
    Reset the distributor admin password.

    The current password cannot be read back, so this always executes;
    setting the same password again is harmless.
    """

    admin_password: str = field(repr=False)

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name) as server:
            context.logger.info("Setting distributor password on %s.", self.instance_name)
            server.change_distributor_password(self.admin_password)


@dataclass(frozen=True)
class SnapshotFolderStep(Step):
    """
    Record the snapshot folder in the distribution database.

    Without an explicit path the folder defaults to `<SQLDataRoot>\\ReplData`
    as registered for the instance; if neither is known the step is skipped.
    """

    database_name: str
    snapshot_path: str | None = None

    def _resolve_folder(self, server: ServerCommands) -> str | None:
        return self.snapshot_path or server.get_default_replication_folder()

    def should_execute(self, context: ExecuteContext) -> bool:
        with context.server(self.instance_name) as server:
            folder = self._resolve_folder(server)
            if folder is None:
                return False
            if not server.database_exists(self.database_name):
                return True
        with context.server(self.instance_name, self.database_name) as distribution:
            return distribution.get_snapshot_folder() != folder

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name) as server:
            folder = self._resolve_folder(server)
        if folder is None:
            context.logger.info("No snapshot folder known for %s.", self.instance_name)
            return

        with context.server(self.instance_name, self.database_name) as distribution:
            context.logger.info("Setting snapshot folder %s on %s.", folder, self.instance_name)
            distribution.set_snapshot_folder(folder)


@dataclass(frozen=True)
class DistributorDirectoryAclStep(Step):
    """
    Grant the distribution agent account full control of the distributor directory.

    Best effort: a failure is logged and the run continues.
    """

    failure_policy = FailurePolicy.CONTINUE

    def should_execute(self, context: ExecuteContext) -> bool:
        return context.directory_access is not None

    def execute(self, context: ExecuteContext) -> None:
        directory_access = context.directory_access
        if directory_access is None:
            return

        with context.server(self.instance_name) as server:
            info = server.get_distributor_info()
            if not info.directory or not info.account:
                context.logger.info("No distributor directory reported by %s.", self.instance_name)
                return

            directory = info.directory
            if not directory_access.exists(directory):
                # local UNC paths are stored with a bare host name
                directory = qualify_unc_host(directory, server.get_domain_name())

        if not directory_access.exists(directory):
            context.logger.warning("Distributor directory %s does not exist.", directory)
            return

        context.logger.info("Granting %s access to %s.", info.account, directory)
        directory_access.grant_full_control(directory, info.account)
