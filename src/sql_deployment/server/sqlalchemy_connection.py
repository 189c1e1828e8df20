"""
SQLAlchemy-backed connections to SQL Server.

- One engine per opened connection, built with `NullPool`, so nothing is ever
  pooled or shared between steps; `close()` disposes both.
- Connections run in AUTOCOMMIT: several administrative statements
  (CREATE DATABASE, replication procedures) cannot run inside a transaction.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import NullPool

from src import settings
from src.constants import MASTER_DATABASE_NAME
from src.sql_deployment.server.ports import Parameters


def build_connection_url(
    instance_name: str,
    database_name: str | None = None,
    *,
    driver: str = settings.MSSQL_DRIVER,
    trust_server_certificate: bool = settings.MSSQL_TRUST_SERVER_CERTIFICATE,
    username: str | None = None,
    password: str | None = None,
) -> URL:
    """
    Build an `mssql+pyodbc` URL for `instance_name`.

    Without a username the connection uses integrated (trusted) authentication.
    """
    query: dict[str, str] = {"driver": driver}
    if trust_server_certificate:
        query["TrustServerCertificate"] = "yes"
    if username is None:
        query["Trusted_Connection"] = "yes"

    return URL.create(
        "mssql+pyodbc",
        username=username,
        password=password,
        host=instance_name,
        database=database_name or MASTER_DATABASE_NAME,
        query=query,
    )


def render_procedure_call(name: str, parameters: Mapping[str, Any]) -> str:
    """
    Render a batch that executes `name` with named binds and selects its status.

        SET NOCOUNT ON; DECLARE @return_code int;
        EXEC @return_code = sp_x @a = :a; SELECT @return_code
    """
    assignments = ", ".join(f"@{key} = :{key}" for key in parameters)
    call = f"EXEC @return_code = {name}"
    if assignments:
        call = f"{call} {assignments}"
    return f"SET NOCOUNT ON; DECLARE @return_code int; {call}; SELECT @return_code"


class SqlAlchemyConnection:
    """`Connection` implementation over one SQLAlchemy connection."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._connection = engine.connect().execution_options(isolation_level="AUTOCOMMIT")

    def execute_scalar(self, sql: str, parameters: Parameters | None = None) -> Any:
        return self._connection.execute(text(sql), dict(parameters or {})).scalar()

    def execute_non_query(self, sql: str, parameters: Parameters | None = None) -> None:
        self._connection.execute(text(sql), dict(parameters or {}))

    def query(self, sql: str, parameters: Parameters | None = None) -> list[dict[str, Any]]:
        result = self._connection.execute(text(sql), dict(parameters or {}))
        return [dict(row) for row in result.mappings()]

    def execute_procedure(self, name: str, parameters: Parameters | None = None) -> int:
        bound = dict(parameters or {})
        return_code = self._connection.execute(text(render_procedure_call(name, bound)), bound).scalar()
        return int(return_code or 0)

    def close(self) -> None:
        try:
            self._connection.close()
        finally:
            self._engine.dispose()


class SqlAlchemyConnectionFactory:
    """Open unpooled SQLAlchemy connections on demand."""

    def __init__(
        self,
        *,
        driver: str = settings.MSSQL_DRIVER,
        trust_server_certificate: bool = settings.MSSQL_TRUST_SERVER_CERTIFICATE,
        username: str | None = None,
        password: str | None = None,
        connect_timeout: int = settings.CONNECT_TIMEOUT_SECONDS,
        echo: bool = False,
    ) -> None:
        self._driver = driver
        self._trust_server_certificate = trust_server_certificate
        self._username = username
        self._password = password
        self._connect_timeout = connect_timeout
        self._echo = echo

    def open(self, instance_name: str, database_name: str | None = None) -> SqlAlchemyConnection:
        url = build_connection_url(
            instance_name,
            database_name,
            driver=self._driver,
            trust_server_certificate=self._trust_server_certificate,
            username=self._username,
            password=self._password,
        )
        engine = create_engine(
            url,
            poolclass=NullPool,
            echo=self._echo,
            connect_args={"timeout": self._connect_timeout},
        )
        try:
            return SqlAlchemyConnection(engine)
        except Exception:
            engine.dispose()
            raise
