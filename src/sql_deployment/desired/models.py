"""
Desired-state models: the declarative tree handed to the compiler.

The node set is closed; `Node` enumerates every variant and the compiler
dispatches on it. Nodes carry only their own fields and are immutable once
built. Children are compiled in field order, which is also the order the
server must converge in (e.g. a database before its extended properties).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TypeAlias

from src.enums import ArticleType, PublicationType
from src.sql_deployment.expressions import Expression

# ---------- database payload and metadata ----------


@dataclass(frozen=True)
class DatabasePackage:
    """A schema package (`.dacpac`) published to the enclosing database."""

    source: Expression
    block_on_possible_data_loss: bool = True
    drop_objects_not_in_source: bool = False
    variables: Mapping[str, Expression] = field(default_factory=dict)


@dataclass(frozen=True)
class DatabaseExtendedProperty:
    """A database-level extended property."""

    name: Expression
    value: Expression


# ---------- replication: publications ----------


@dataclass(frozen=True)
class PublicationArticle:
    """One published object; `article_type` selects table or schema-only publishing."""

    name: Expression
    article_type: ArticleType = ArticleType.TABLE
    source_owner: str = "dbo"


@dataclass(frozen=True)
class Publication:
    """A publication within the enclosing database."""

    name: Expression
    publication_type: PublicationType = PublicationType.TRANSACTIONAL
    publication_description: str = ""
    articles: tuple[PublicationArticle, ...] = ()


# ---------- database ----------


@dataclass(frozen=True)
class Database:
    """
    A database on the enclosing instance.

    Children compile as: package, extended properties, then publications.
    """

    name: Expression
    package: DatabasePackage | None = None
    extended_properties: tuple[DatabaseExtendedProperty, ...] = ()
    publications: tuple[Publication, ...] = ()


# ---------- replication: server roles ----------


@dataclass(frozen=True)
class Distributor:
    """Configures the enclosing instance as a replication distributor."""

    database_name: Expression | None = None  # None => "distribution"
    admin_password: Expression | None = field(default=None, repr=False)
    data_path: Expression | None = None
    logs_path: Expression | None = None
    log_file_size: int | None = 2
    minimum_retention: int | None = 0
    maximum_retention: int | None = 72
    history_retention: int | None = 48
    snapshot_path: Expression | None = None  # None => <SQLDataRoot>\ReplData


@dataclass(frozen=True)
class Publisher:
    """Registers the enclosing instance as a publisher with its distributor."""

    distributor_instance_name: Expression | None = None  # None => the instance itself
    distribution_database: Expression | None = None
    admin_password: Expression | None = field(default=None, repr=False)
    working_directory: Expression | None = None


# ---------- root ----------


@dataclass(frozen=True)
class Instance:
    """
    A target instance; the root of a deployment.

    `name` overrides the instance seeded in the compile context. Children
    compile as: distributor, publisher, then databases in declared order.
    """

    name: Expression | None = None
    distributor: Distributor | None = None
    publisher: Publisher | None = None
    databases: tuple[Database, ...] = ()


Node: TypeAlias = (
    Instance
    | Database
    | DatabasePackage
    | DatabaseExtendedProperty
    | Distributor
    | Publisher
    | Publication
    | PublicationArticle
)
