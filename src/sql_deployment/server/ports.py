"""
Ports for the collaborators a step talks to.

- Connection / ConnectionFactory: run parameterised T-SQL against one instance
- PackageDeployer: publish a schema package to one database
- DirectoryAccess: grant file-system permissions on a server directory

Implementations live outside the core (SQLAlchemy, sqlpackage, fakes in tests).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from src.sql_deployment.cancellation import CancellationToken

Parameters = Mapping[str, Any]


class Connection(Protocol):
    """
    A live connection to a single instance (optionally scoped to one database).

    Statements use `:name` bind parameters. Every call either returns its
    result or raises; nonzero procedure status codes are returned, not raised.
    """

    def execute_scalar(self, sql: str, parameters: Parameters | None = None) -> Any: ...

    def execute_non_query(self, sql: str, parameters: Parameters | None = None) -> None: ...

    def query(self, sql: str, parameters: Parameters | None = None) -> list[dict[str, Any]]: ...

    def execute_procedure(self, name: str, parameters: Parameters | None = None) -> int: ...

    def close(self) -> None: ...


class ConnectionFactory(Protocol):
    """Opens a fresh, unpooled connection for one step."""

    def open(self, instance_name: str, database_name: str | None = None) -> Connection: ...


@dataclass(frozen=True)
class PackageDeployment:
    """Everything needed to publish one schema package to one database."""

    instance_name: str
    database_name: str
    source_path: str
    properties: tuple[tuple[str, str], ...] = ()
    variables: tuple[tuple[str, str], ...] = ()


class PackageDeployer(Protocol):
    """Publishes a schema package; raises ExecutionError on failure."""

    def deploy(self, deployment: PackageDeployment, cancellation: CancellationToken) -> None: ...


class DirectoryAccess(Protocol):
    """Host-side file-system permission management."""

    def exists(self, path: str) -> bool: ...

    def grant_full_control(self, path: str, account: str) -> None: ...
