"""
T-SQL text used by the server façade.

Every statement is a fixed string with `:name` bind parameters; identifiers
supplied by callers are only ever passed as parameters (dynamic SQL quotes
them with QUOTENAME on the server).
"""

from __future__ import annotations

from typing import Final

# ---------- instance ----------

SELECT_SERVER_NAME: Final[str] = "SELECT @@SERVERNAME"

SELECT_DEFAULT_DOMAIN: Final[str] = "SELECT DEFAULT_DOMAIN()"

READ_SQL_DATA_ROOT: Final[str] = (
    "EXEC master.dbo.xp_instance_regread "
    "N'HKEY_LOCAL_MACHINE', N'Software\\Microsoft\\MSSQLServer\\Setup', N'SQLDataRoot'"
)

# ---------- databases ----------

SELECT_DATABASE_ID: Final[str] = "SELECT database_id FROM sys.databases WHERE name = :name"

CREATE_DATABASE: Final[str] = (
    "DECLARE @statement nvarchar(max) = N'CREATE DATABASE ' + QUOTENAME(:name); "
    "IF @statement IS NULL THROW 50000, N'Database name is not a valid identifier.', 1; "
    "EXEC (@statement)"
)

SELECT_DATABASE_EXTENDED_PROPERTY: Final[str] = (
    "SELECT CAST(value AS nvarchar(max)) FROM sys.extended_properties "
    "WHERE class = 0 AND name = :name"
)

SELECT_DATABASE_IS_PUBLISHED: Final[str] = (
    "SELECT is_published FROM sys.databases WHERE name = :name"
)

# ---------- distributor ----------

# the linked server is always named repl_distributor; data_source holds the real server
SELECT_DISTRIBUTOR_NAME: Final[str] = "SELECT data_source FROM sys.servers WHERE is_distributor = 1"

SELECT_DISTRIBUTION_PUBLISHER: Final[str] = (
    "SELECT name FROM msdb.dbo.MSdistpublishers WHERE name = :name"
)

HELP_DISTRIBUTION_DATABASES: Final[str] = "EXEC sp_helpdistributiondb"

HELP_DISTRIBUTOR: Final[str] = "EXEC sp_helpdistributor"

SELECT_SNAPSHOT_FOLDER: Final[str] = (
    "SELECT CAST(value AS nvarchar(max)) FROM sys.fn_listextendedproperty("
    "N'SnapshotFolder', N'schema', N'dbo', N'table', N'UIProperties', NULL, NULL)"
)

SET_SNAPSHOT_FOLDER: Final[str] = (
    "IF OBJECT_ID(N'dbo.UIProperties', N'U') IS NULL "
    "CREATE TABLE dbo.UIProperties (id int); "
    "IF EXISTS (SELECT * FROM sys.fn_listextendedproperty("
    "N'SnapshotFolder', N'schema', N'dbo', N'table', N'UIProperties', NULL, NULL)) "
    "EXEC sp_updateextendedproperty N'SnapshotFolder', :folder, "
    "N'schema', N'dbo', N'table', N'UIProperties' "
    "ELSE "
    "EXEC sp_addextendedproperty N'SnapshotFolder', :folder, "
    "N'schema', N'dbo', N'table', N'UIProperties'"
)

# ---------- publications ----------

SELECT_PUBLICATION_CATALOG: Final[str] = "SELECT OBJECT_ID(N'dbo.syspublications', N'U')"

SELECT_PUBLICATION: Final[str] = "SELECT name FROM dbo.syspublications WHERE name = :name"

SELECT_ARTICLE: Final[str] = (
    "SELECT a.name FROM dbo.sysextendedarticlesview AS a "
    "JOIN dbo.syspublications AS p ON p.pubid = a.pubid "
    "WHERE p.name = :publication AND a.name = :article"
)

# ---------- procedures ----------

SP_ADD_DISTRIBUTOR: Final[str] = "sp_adddistributor"
SP_CHANGE_DISTRIBUTOR_PASSWORD: Final[str] = "sp_changedistributor_password"
SP_ADD_DISTRIBUTION_DB: Final[str] = "sp_adddistributiondb"
SP_CHANGE_DISTRIBUTION_DB: Final[str] = "sp_changedistributiondb"
SP_ADD_DIST_PUBLISHER: Final[str] = "sp_adddistpublisher"
SP_ADD_EXTENDED_PROPERTY: Final[str] = "sp_addextendedproperty"
SP_UPDATE_EXTENDED_PROPERTY: Final[str] = "sp_updateextendedproperty"
SP_REPLICATION_DB_OPTION: Final[str] = "sp_replicationdboption"
SP_ADD_PUBLICATION: Final[str] = "sp_addpublication"
SP_ADD_PUBLICATION_SNAPSHOT: Final[str] = "sp_addpublication_snapshot"
SP_ADD_ARTICLE: Final[str] = "sp_addarticle"
