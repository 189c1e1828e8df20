import copy
from dataclasses import replace

import pytest

from src.sql_deployment.context import ExecuteContext
from src.sql_deployment.server import _sql

# ---------- fake server ----------


class FakeDatabase:
    """State of one database on the fake instance."""

    def __init__(self) -> None:
        self.extended_properties: dict[str, str] = {}
        self.is_published = False
        self.publications: dict[str, dict[str, str]] = {}  # publication -> {article: type}
        self.snapshot_folder: str | None = None


class FakeSqlServer:
    """
    In-memory stand-in for one SQL Server instance.

    Understands exactly the statements in `_sql` and the procedures the
    façade calls; anything else fails the test loudly.
    """

    def __init__(self, server_name: str = "SRV1") -> None:
        self.server_name = server_name
        self.databases: dict[str, FakeDatabase] = {"master": FakeDatabase()}
        self.distributor: str | None = None
        self.distributor_password: str | None = None
        self.distribution_databases: dict[str, dict[str, int]] = {}
        self.distribution_publishers: dict[str, str] = {}
        self.data_root: str | None = r"C:\SQLData\MSSQL"
        self.domain_name: str | None = "corp.local"
        self.distributor_directory: str | None = r"\\srv1\ReplData"
        self.distributor_account: str | None = r"CORP\sqlagent"

        self.mutations: list[tuple[str, dict]] = []
        self.return_codes: dict[str, int] = {}  # procedure -> status to return
        self.fail_on: dict[str, Exception] = {}  # statement or procedure -> error to raise
        self.opened = 0
        self.closed = 0

    def add_database(self, name: str) -> FakeDatabase:
        self.databases[name] = FakeDatabase()
        return self.databases[name]

    @property
    def open_connections(self) -> int:
        return self.opened - self.closed

    def state(self) -> dict:
        """Comparable snapshot of everything a deployment can change."""
        return copy.deepcopy(
            {
                "databases": {name: vars(db) for name, db in self.databases.items()},
                "distributor": self.distributor,
                "distributor_password": self.distributor_password,
                "distribution_databases": self.distribution_databases,
                "distribution_publishers": self.distribution_publishers,
            }
        )


class FakeConnection:
    def __init__(self, server: FakeSqlServer, database_name: str | None) -> None:
        database_name = database_name or "master"
        if database_name not in server.databases:
            raise RuntimeError(f'Cannot open database "{database_name}" requested by the login.')
        self.server = server
        self.database_name = database_name
        self.database = server.databases[database_name]
        server.opened += 1

    def _check(self, key: str) -> None:
        if key in self.server.fail_on:
            raise self.server.fail_on[key]

    def execute_scalar(self, sql, parameters=None):
        self._check(sql)
        p = parameters or {}
        server = self.server
        if sql == _sql.SELECT_SERVER_NAME:
            return server.server_name
        if sql == _sql.SELECT_DEFAULT_DOMAIN:
            return server.domain_name
        if sql == _sql.SELECT_DATABASE_ID:
            return 7 if p["name"] in server.databases else None
        if sql == _sql.SELECT_DATABASE_EXTENDED_PROPERTY:
            return self.database.extended_properties.get(p["name"])
        if sql == _sql.SELECT_DATABASE_IS_PUBLISHED:
            database = server.databases.get(p["name"])
            return None if database is None else database.is_published
        if sql == _sql.SELECT_DISTRIBUTOR_NAME:
            return server.distributor
        if sql == _sql.SELECT_DISTRIBUTION_PUBLISHER:
            return p["name"] if p["name"] in server.distribution_publishers else None
        if sql == _sql.SELECT_SNAPSHOT_FOLDER:
            return self.database.snapshot_folder
        if sql == _sql.SELECT_PUBLICATION_CATALOG:
            return 1977058079 if self.database.is_published else None
        if sql == _sql.SELECT_PUBLICATION:
            return p["name"] if p["name"] in self.database.publications else None
        if sql == _sql.SELECT_ARTICLE:
            articles = self.database.publications.get(p["publication"], {})
            return p["article"] if p["article"] in articles else None
        raise AssertionError(f"Unexpected scalar SQL: {sql}")

    def execute_non_query(self, sql, parameters=None):
        self._check(sql)
        p = parameters or {}
        if sql == _sql.CREATE_DATABASE:
            self.server.mutations.append(("CREATE DATABASE", dict(p)))
            self.server.databases[p["name"]] = FakeDatabase()
            return
        if sql == _sql.SET_SNAPSHOT_FOLDER:
            self.server.mutations.append(("SET SNAPSHOT FOLDER", dict(p)))
            self.database.snapshot_folder = p["folder"]
            return
        raise AssertionError(f"Unexpected non-query SQL: {sql}")

    def query(self, sql, parameters=None):
        self._check(sql)
        server = self.server
        if sql == _sql.READ_SQL_DATA_ROOT:
            if server.data_root is None:
                return []
            return [{"Value": "SQLDataRoot", "Data": server.data_root}]
        if sql == _sql.HELP_DISTRIBUTION_DATABASES:
            return [{"name": name, **values} for name, values in server.distribution_databases.items()]
        if sql == _sql.HELP_DISTRIBUTOR:
            if server.distributor is None:
                return []
            return [{"directory": server.distributor_directory, "account": server.distributor_account}]
        raise AssertionError(f"Unexpected query SQL: {sql}")

    def execute_procedure(self, name, parameters=None):
        self._check(name)
        p = dict(parameters or {})
        server = self.server
        server.mutations.append((name, p))
        return_code = server.return_codes.get(name, 0)
        if return_code:
            return return_code

        if name == _sql.SP_ADD_DISTRIBUTOR:
            server.distributor = p["distributor"]
            server.distributor_password = p.get("password")
        elif name == _sql.SP_CHANGE_DISTRIBUTOR_PASSWORD:
            server.distributor_password = p["password"]
        elif name == _sql.SP_ADD_DISTRIBUTION_DB:
            server.distribution_databases[p["database"]] = {
                "min_distretention": p.get("min_distretention", 0),
                "max_distretention": p.get("max_distretention", 72),
                "history_retention": p.get("history_retention", 48),
            }
            server.databases.setdefault(p["database"], FakeDatabase())
        elif name == _sql.SP_CHANGE_DISTRIBUTION_DB:
            server.distribution_databases[p["database"]][p["property"]] = int(p["value"])
        elif name == _sql.SP_ADD_DIST_PUBLISHER:
            server.distribution_publishers[p["publisher"]] = p["distribution_db"]
        elif name == _sql.SP_ADD_EXTENDED_PROPERTY:
            if p["name"] in self.database.extended_properties:
                raise RuntimeError(f"Property {p['name']} already exists.")
            self.database.extended_properties[p["name"]] = p["value"]
        elif name == _sql.SP_UPDATE_EXTENDED_PROPERTY:
            self.database.extended_properties[p["name"]] = p["value"]
        elif name == _sql.SP_REPLICATION_DB_OPTION:
            server.databases[p["dbname"]].is_published = p["value"] == "true"
        elif name == _sql.SP_ADD_PUBLICATION:
            self.database.publications[p["publication"]] = {}
        elif name == _sql.SP_ADD_PUBLICATION_SNAPSHOT:
            pass
        elif name == _sql.SP_ADD_ARTICLE:
            self.database.publications[p["publication"]][p["article"]] = p["type"]
        else:
            raise AssertionError(f"Unexpected procedure: {name}")
        return 0

    def close(self):
        self.server.closed += 1


class FakeConnectionFactory:
    def __init__(self, servers: dict[str, FakeSqlServer]) -> None:
        self.servers = servers
        self.opened: list[tuple[str, str | None]] = []

    def open(self, instance_name, database_name=None):
        if instance_name not in self.servers:
            raise ConnectionError(f"A network-related error occurred connecting to {instance_name}.")
        self.opened.append((instance_name, database_name))
        return FakeConnection(self.servers[instance_name], database_name)


# ---------- fake collaborators ----------


class RecordingPackageDeployer:
    def __init__(self) -> None:
        self.deployments = []
        self.error: Exception | None = None

    def deploy(self, deployment, cancellation):
        self.deployments.append(deployment)
        if self.error is not None:
            raise self.error


class RecordingDirectoryAccess:
    def __init__(self, existing=()) -> None:
        self.existing = set(existing)
        self.grants: list[tuple[str, str]] = []
        self.error: Exception | None = None

    def exists(self, path):
        return path in self.existing

    def grant_full_control(self, path, account):
        if self.error is not None:
            raise self.error
        self.grants.append((path, account))


# ---------- fixtures ----------


@pytest.fixture
def sql_server():
    return FakeSqlServer("SRV1")


@pytest.fixture
def connections(sql_server):
    return FakeConnectionFactory({"SRV1": sql_server})


@pytest.fixture
def package_deployer():
    return RecordingPackageDeployer()


@pytest.fixture
def directory_access():
    return RecordingDirectoryAccess()


@pytest.fixture
def execute_context(connections, package_deployer):
    return ExecuteContext(connections=connections, package_deployer=package_deployer)


@pytest.fixture
def with_directory_access(execute_context, directory_access):
    return replace(execute_context, directory_access=directory_access)
