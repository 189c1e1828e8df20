"""Configuration values sourced from environment variables."""

import os
from typing import Final

LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="sql-deployment")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)

MSSQL_DRIVER: Final[str] = os.getenv(key="MSSQL_DRIVER", default="ODBC Driver 18 for SQL Server")
MSSQL_TRUST_SERVER_CERTIFICATE: Final[bool] = bool(
    os.getenv(key="MSSQL_TRUST_SERVER_CERTIFICATE", default="True").upper() == "TRUE"
)
CONNECT_TIMEOUT_SECONDS: Final[int] = int(os.getenv(key="CONNECT_TIMEOUT_SECONDS", default="30"))

SQLPACKAGE_PATH: Final[str] = os.getenv(key="SQLPACKAGE_PATH", default="sqlpackage")
SQLPACKAGE_POLL_SECONDS: Final[float] = float(
    os.getenv(key="SQLPACKAGE_POLL_SECONDS", default="1.0")
)
