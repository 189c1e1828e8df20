"""Publisher registration step."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.sql_deployment.errors import PreconditionProbeError
from src.sql_deployment.server.commands import ServerCommands
from src.sql_deployment.steps.base import Step

if TYPE_CHECKING:
    from src.sql_deployment.context import ExecuteContext


@dataclass(frozen=True)
class PublisherStep(Step):
    """
    Point the instance at its distributor and, when it distributes for itself,
    register it as a known publisher.

    A remote distributor must separately list this instance as a publisher;
    that registration runs against the distributor, not here.
    """

    distribution_database: str
    distributor_name: str | None = None  # None => the instance itself
    admin_password: str | None = field(default=None, repr=False)
    working_directory: str | None = None

    def _distributor_for(self, server_name: str) -> str:
        return self.distributor_name or server_name

    @staticmethod
    def _same(left: str, right: str) -> bool:
        return left.casefold() == right.casefold()

    def _needs_publisher_registration(self, server: ServerCommands, server_name: str) -> bool:
        distributor = self._distributor_for(server_name)
        return self._same(distributor, server_name) and not server.is_distribution_publisher(
            server_name
        )

    def should_execute(self, context: ExecuteContext) -> bool:
        with context.server(self.instance_name) as server:
            server_name = server.get_server_name()
            registered = server.get_distributor_name()
            if registered is None:
                return True
            wanted = self._distributor_for(server_name)
            if not self._same(registered, wanted):
                raise PreconditionProbeError(
                    f"{self.instance_name} already uses distributor {registered}, not {wanted}.",
                    instance_name=self.instance_name,
                    step=self,
                )
            return self._needs_publisher_registration(server, server_name)

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name) as server:
            server_name = server.get_server_name()
            distributor = self._distributor_for(server_name)

            if server.get_distributor_name() is None:
                context.logger.info(
                    "Registering distributor %s on %s.", distributor, self.instance_name
                )
                server.add_distributor(distributor, self.admin_password)

            context.cancellation.raise_if_cancelled()
            if self._needs_publisher_registration(server, server_name):
                context.logger.info(
                    "Registering %s as a publisher using %s.",
                    server_name,
                    self.distribution_database,
                )
                server.add_distribution_publisher(
                    server_name, self.distribution_database, self.working_directory
                )
