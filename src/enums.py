"""Enumerations used throughout the deployment engine."""

from enum import StrEnum


class PublicationType(StrEnum):
    """Replication frequency of a publication."""

    TRANSACTIONAL = "continuous"
    SNAPSHOT = "snapshot"


class ArticleType(StrEnum):
    """Kind of database object published by an article."""

    TABLE = "logbased"
    VIEW = "view schema only"
    PROCEDURE = "proc schema only"
    FUNCTION = "func schema only"


class PackageFormat(StrEnum):
    """Schema package formats recognised by the package deployer."""

    DACPAC = ".dacpac"
