"""Steps that converge a database and its database-level metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.sql_deployment.steps.base import DatabaseScopedStep

if TYPE_CHECKING:
    from src.sql_deployment.context import ExecuteContext


@dataclass(frozen=True)
class DatabaseStep(DatabaseScopedStep):
    """Create the database if it does not exist."""

    def should_execute(self, context: ExecuteContext) -> bool:
        return not self._database_exists(context)

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name) as server:
            context.logger.info("Creating database %s.", self.target)
            server.create_database(self.database_name)


@dataclass(frozen=True)
class DatabaseExtendedPropertyStep(DatabaseScopedStep):
    """Add or update one database-level extended property."""

    name: str
    value: str

    @property
    def description(self) -> str:
        return f"{type(self).__name__} {self.name!r} on {self.target}"

    def should_execute(self, context: ExecuteContext) -> bool:
        if not self._database_exists(context):
            return True
        with context.server(self.instance_name, self.database_name) as server:
            return server.get_database_extended_property(self.name) != self.value

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name, self.database_name) as server:
            current = server.get_database_extended_property(self.name)
            if current is None:
                context.logger.info("Adding extended property %s on %s.", self.name, self.target)
                server.add_database_extended_property(self.name, self.value)
            else:
                context.logger.info("Updating extended property %s on %s.", self.name, self.target)
                server.update_database_extended_property(self.name, self.value)
