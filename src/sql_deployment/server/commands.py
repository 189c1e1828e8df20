"""
Server Commands

Façade over a `Connection` for the administrative calls the steps issue.

- This module is the single place that knows T-SQL (via `_sql`) and the
  parameter shapes of the replication procedures.
- Read methods never mutate; write methods raise `ExecutionError` when a
  procedure returns a nonzero status code.
- Connection lifetime is owned by the caller (see `ExecuteContext.server`).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import PureWindowsPath
from typing import Any

from src.constants import (
    PUBLISHER_TYPE,
    REPLICATION_DATA_FOLDER_NAME,
)
from src.enums import ArticleType, PublicationType
from src.sql_deployment.errors import ExecutionError
from src.sql_deployment.server import _sql
from src.sql_deployment.server.ports import Connection


@dataclass(frozen=True)
class DistributionDatabaseInfo:
    """One row of sp_helpdistributiondb."""

    name: str
    minimum_retention: int | None
    maximum_retention: int | None
    history_retention: int | None


@dataclass(frozen=True)
class DistributorInfo:
    """The parts of sp_helpdistributor the engine uses."""

    directory: str | None
    account: str | None


class ServerCommands:
    """Administrative calls against one instance, over one open connection."""

    def __init__(self, connection: Connection, instance_name: str) -> None:
        self._connection = connection
        self.instance_name = instance_name

    # ---------- helpers ----------

    def _call(self, procedure: str, parameters: Mapping[str, Any]) -> None:
        """Run a procedure, dropping unset parameters, and fail on a nonzero status."""
        bound = {name: value for name, value in parameters.items() if value is not None}
        return_code = self._connection.execute_procedure(procedure, bound)
        if return_code != 0:
            raise ExecutionError(
                f"Error code returned executing {procedure}.",
                instance_name=self.instance_name,
                diagnostic=f"return code {return_code}",
            )

    # ---------- instance ----------

    def get_server_name(self) -> str:
        return self._connection.execute_scalar(_sql.SELECT_SERVER_NAME)

    def get_domain_name(self) -> str | None:
        return self._connection.execute_scalar(_sql.SELECT_DEFAULT_DOMAIN) or None

    def get_default_replication_folder(self) -> str | None:
        """`<SQLDataRoot>\\ReplData` as registered for the instance, if known."""
        rows = self._connection.query(_sql.READ_SQL_DATA_ROOT)
        values = {row.get("Value"): row.get("Data") for row in rows}
        data_root = values.get("SQLDataRoot")
        if not data_root:
            return None
        return str(PureWindowsPath(data_root) / REPLICATION_DATA_FOLDER_NAME)

    # ---------- databases ----------

    def database_exists(self, database_name: str) -> bool:
        database_id = self._connection.execute_scalar(
            _sql.SELECT_DATABASE_ID, {"name": database_name}
        )
        return database_id is not None

    def create_database(self, database_name: str) -> None:
        self._connection.execute_non_query(_sql.CREATE_DATABASE, {"name": database_name})

    def get_database_extended_property(self, name: str) -> str | None:
        """Read a database-level extended property (connection must target the database)."""
        return self._connection.execute_scalar(
            _sql.SELECT_DATABASE_EXTENDED_PROPERTY, {"name": name}
        )

    def add_database_extended_property(self, name: str, value: str) -> None:
        self._call(_sql.SP_ADD_EXTENDED_PROPERTY, {"name": name, "value": value})

    def update_database_extended_property(self, name: str, value: str) -> None:
        self._call(_sql.SP_UPDATE_EXTENDED_PROPERTY, {"name": name, "value": value})

    # ---------- distributor ----------

    def get_distributor_name(self) -> str | None:
        """Name of the server registered as distributor, or None."""
        return self._connection.execute_scalar(_sql.SELECT_DISTRIBUTOR_NAME)

    def add_distributor(self, distributor_name: str, password: str | None) -> None:
        self._call(
            _sql.SP_ADD_DISTRIBUTOR,
            {"distributor": distributor_name, "password": password},
        )

    def change_distributor_password(self, password: str) -> None:
        self._call(_sql.SP_CHANGE_DISTRIBUTOR_PASSWORD, {"password": password})

    def list_distribution_databases(self) -> tuple[DistributionDatabaseInfo, ...]:
        rows = self._connection.query(_sql.HELP_DISTRIBUTION_DATABASES)
        return tuple(
            DistributionDatabaseInfo(
                name=row["name"],
                minimum_retention=row.get("min_distretention"),
                maximum_retention=row.get("max_distretention"),
                history_retention=row.get("history_retention"),
            )
            for row in rows
        )

    def get_distribution_database(self, database_name: str) -> DistributionDatabaseInfo | None:
        for info in self.list_distribution_databases():
            if info.name == database_name:
                return info
        return None

    def add_distribution_database(
        self,
        database_name: str,
        *,
        minimum_retention: int | None = None,
        maximum_retention: int | None = None,
        history_retention: int | None = None,
        data_folder: str | None = None,
        log_folder: str | None = None,
        log_file_size: int | None = None,
    ) -> None:
        self._call(
            _sql.SP_ADD_DISTRIBUTION_DB,
            {
                "database": database_name,
                "data_folder": data_folder,
                "log_folder": log_folder,
                "log_file_size": log_file_size,
                "min_distretention": minimum_retention,
                "max_distretention": maximum_retention,
                "history_retention": history_retention,
                "security_mode": 1,
            },
        )

    def change_distribution_database(self, database_name: str, property_name: str, value: Any) -> None:
        self._call(
            _sql.SP_CHANGE_DISTRIBUTION_DB,
            {"database": database_name, "property": property_name, "value": str(value)},
        )

    def is_distribution_publisher(self, publisher_name: str) -> bool:
        known = self._connection.execute_scalar(
            _sql.SELECT_DISTRIBUTION_PUBLISHER, {"name": publisher_name}
        )
        return known is not None

    def add_distribution_publisher(
        self,
        publisher_name: str,
        distribution_database: str,
        working_directory: str | None = None,
    ) -> None:
        self._call(
            _sql.SP_ADD_DIST_PUBLISHER,
            {
                "publisher": publisher_name,
                "distribution_db": distribution_database,
                "security_mode": 1,
                "working_directory": working_directory,
                "trusted": "false",
                "thirdparty_flag": 0,
                "publisher_type": PUBLISHER_TYPE,
            },
        )

    def get_distributor_info(self) -> DistributorInfo:
        rows = self._connection.query(_sql.HELP_DISTRIBUTOR)
        if not rows:
            return DistributorInfo(directory=None, account=None)
        row = rows[0]
        return DistributorInfo(directory=row.get("directory"), account=row.get("account"))

    def get_snapshot_folder(self) -> str | None:
        """Snapshot folder recorded in the distribution database (connection must target it)."""
        return self._connection.execute_scalar(_sql.SELECT_SNAPSHOT_FOLDER)

    def set_snapshot_folder(self, folder: str) -> None:
        self._connection.execute_non_query(_sql.SET_SNAPSHOT_FOLDER, {"folder": folder})

    # ---------- publications ----------

    def is_database_published(self, database_name: str) -> bool:
        return bool(
            self._connection.execute_scalar(
                _sql.SELECT_DATABASE_IS_PUBLISHED, {"name": database_name}
            )
        )

    def enable_publishing(self, database_name: str) -> None:
        self._call(
            _sql.SP_REPLICATION_DB_OPTION,
            {"dbname": database_name, "optname": "publish", "value": "true"},
        )

    def _has_publication_catalog(self) -> bool:
        return self._connection.execute_scalar(_sql.SELECT_PUBLICATION_CATALOG) is not None

    def publication_exists(self, publication_name: str) -> bool:
        if not self._has_publication_catalog():
            return False
        found = self._connection.execute_scalar(_sql.SELECT_PUBLICATION, {"name": publication_name})
        return found is not None

    def add_publication(
        self,
        publication_name: str,
        publication_type: PublicationType,
        description: str = "",
    ) -> None:
        self._call(
            _sql.SP_ADD_PUBLICATION,
            {
                "publication": publication_name,
                "description": description or None,
                "repl_freq": publication_type.value,
                "status": "active",
                "allow_push": "true",
                "independent_agent": "true",
                "immediate_sync": "true",
            },
        )
        self._call(_sql.SP_ADD_PUBLICATION_SNAPSHOT, {"publication": publication_name})

    def article_exists(self, publication_name: str, article_name: str) -> bool:
        if not self._has_publication_catalog():
            return False
        found = self._connection.execute_scalar(
            _sql.SELECT_ARTICLE, {"publication": publication_name, "article": article_name}
        )
        return found is not None

    def add_article(
        self,
        publication_name: str,
        article_name: str,
        article_type: ArticleType,
        source_owner: str,
    ) -> None:
        self._call(
            _sql.SP_ADD_ARTICLE,
            {
                "publication": publication_name,
                "article": article_name,
                "source_owner": source_owner,
                "source_object": article_name,
                "type": article_type.value,
            },
        )
