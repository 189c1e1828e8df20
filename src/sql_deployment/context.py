"""
Ambient state threaded through compilation and execution.

- CompileContext: immutable; each node derives a new context for its children
  with `with_instance` / `with_database` / `with_publication`.
- ExecuteContext: one per run; owns the logger sink, the cancellation signal,
  and the collaborators steps use to reach the server.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from src.logger import LOGGER
from src.sql_deployment.cancellation import CancellationToken
from src.sql_deployment.errors import ResolutionError
from src.sql_deployment.server.commands import ServerCommands
from src.sql_deployment.server.ports import (
    Connection,
    ConnectionFactory,
    DirectoryAccess,
    PackageDeployer,
)

_AMBIENT_FIELDS = ("instance_name", "database_name", "publication_name")


@dataclass(frozen=True)
class CompileContext:
    """Compile-time ambient state at one position in the declarative tree."""

    instance_name: str | None = None
    database_name: str | None = None
    publication_name: str | None = None
    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Snapshot so callers cannot mutate a captured context through their dict.
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    def lookup(self, key: str) -> str | None:
        """Ambient attribute for `instance_name`/`database_name`/`publication_name`, else a variable."""
        if key in _AMBIENT_FIELDS:
            return getattr(self, key)
        return self.variables.get(key)

    def with_instance(self, instance_name: str) -> CompileContext:
        """Scope to an instance; database and publication scopes are cleared."""
        return replace(
            self,
            instance_name=instance_name,
            database_name=None,
            publication_name=None,
        )

    def with_database(self, database_name: str) -> CompileContext:
        return replace(self, database_name=database_name, publication_name=None)

    def with_publication(self, publication_name: str) -> CompileContext:
        return replace(self, publication_name=publication_name)

    def require_instance_name(self) -> str:
        return self._require("instance_name")

    def require_database_name(self) -> str:
        return self._require("database_name")

    def require_publication_name(self) -> str:
        return self._require("publication_name")

    def _require(self, key: str) -> str:
        value = getattr(self, key)
        if value is None:
            raise ResolutionError(f"No {key.replace('_', ' ')} is in scope.")
        return value


@dataclass(frozen=True)
class ExecuteContext:
    """Run-time ambient state shared by every step of one run."""

    connections: ConnectionFactory
    logger: logging.Logger = LOGGER
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    package_deployer: PackageDeployer | None = None
    directory_access: DirectoryAccess | None = None

    @contextmanager
    def connect(self, instance_name: str, database_name: str | None = None) -> Iterator[Connection]:
        """Open a connection for the duration of the block; always closed on exit."""
        connection = self.connections.open(instance_name, database_name)
        try:
            yield connection
        finally:
            connection.close()

    @contextmanager
    def server(
        self, instance_name: str, database_name: str | None = None
    ) -> Iterator[ServerCommands]:
        """Like `connect`, but yields the administrative-call façade."""
        with self.connect(instance_name, database_name) as connection:
            yield ServerCommands(connection, instance_name)
