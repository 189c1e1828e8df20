"""Fixed server-side names used across the deployment engine."""

from typing import Final

MASTER_DATABASE_NAME: Final[str] = "master"
DEFAULT_DISTRIBUTION_DATABASE_NAME: Final[str] = "distribution"
REPLICATION_DATA_FOLDER_NAME: Final[str] = "ReplData"
PUBLISHER_TYPE: Final[str] = "MSSQLSERVER"
MAX_IDENTIFIER_LENGTH: Final[int] = 128  # sysname
