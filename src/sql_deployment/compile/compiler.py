"""
Compile a declarative tree into an ordered plan of steps.

Traversal is depth-first, pre-order:
  - a node expands its own expressions against the incoming context,
  - emits the step(s) that establish itself,
  - then compiles each child in declared field order under a context that
    carries the name it just resolved.

Each handler returns a finished tuple; the traversal concatenates them, so the
whole plan exists before anything runs. Compilation performs no I/O. Identical
requests from sibling subtrees are not deduplicated.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import PurePath

from src.constants import DEFAULT_DISTRIBUTION_DATABASE_NAME, MAX_IDENTIFIER_LENGTH
from src.enums import PackageFormat
from src.sql_deployment.context import CompileContext
from src.sql_deployment.desired.models import (
    Database,
    DatabaseExtendedProperty,
    DatabasePackage,
    Distributor,
    Instance,
    Node,
    Publication,
    PublicationArticle,
    Publisher,
)
from src.sql_deployment.errors import CompilationError
from src.sql_deployment.expressions import Expression, expand_optional
from src.sql_deployment.steps.base import Step
from src.sql_deployment.steps.database import DatabaseExtendedPropertyStep, DatabaseStep
from src.sql_deployment.steps.distributor import (
    DistributionDatabaseStep,
    DistributorDirectoryAclStep,
    DistributorPasswordStep,
    DistributorStep,
    SnapshotFolderStep,
)
from src.sql_deployment.steps.package import DatabasePackageStep
from src.sql_deployment.steps.publication import (
    EnablePublishingStep,
    PublicationArticleStep,
    PublicationStep,
)
from src.sql_deployment.steps.publisher import PublisherStep

_RECOGNISED_PACKAGE_SUFFIXES = frozenset(item.value for item in PackageFormat)


@dataclass(frozen=True)
class Plan:
    """An ordered, execution-ready sequence of steps."""

    steps: tuple[Step, ...]

    def __len__(self) -> int:
        return len(self.steps)


# ---------- tiny helpers ----------


def _expand_name(expression: Expression, context: CompileContext, what: str) -> str:
    """Expand an identifying expression; an empty or over-long result is a configuration defect."""
    value = expression.expand(context).strip()
    if not value:
        raise CompilationError(
            f"{what} name expression {expression.template!r} expanded to an empty string."
        )
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise CompilationError(
            f"{what} name {value[:32]!r}... is longer than {MAX_IDENTIFIER_LENGTH} characters."
        )
    return value


def _reject_duplicates(names: Iterable[str], what: str, owner: str) -> None:
    seen: set[str] = set()
    for name in names:
        key = name.casefold()
        if key in seen:
            raise CompilationError(f"{what} {name!r} is declared more than once on {owner}.")
        seen.add(key)


def _check_retention(name: str, value: int | None) -> None:
    if value is not None and value < 0:
        raise CompilationError(f"Distributor {name} must not be negative (got {value}).")


class Compiler:
    """Flattens a declarative tree into a `Plan`, dispatching on the node variant."""

    def __init__(self) -> None:
        self._handlers: Mapping[type, Callable[[Node, CompileContext], tuple[Step, ...]]] = {
            Instance: self._compile_instance,
            Database: self._compile_database,
            DatabasePackage: self._compile_package,
            DatabaseExtendedProperty: self._compile_extended_property,
            Distributor: self._compile_distributor,
            Publisher: self._compile_publisher,
            Publication: self._compile_publication,
            PublicationArticle: self._compile_article,
        }

    # ---------- public API ----------

    def compile(self, root: Node, context: CompileContext) -> Plan:
        """Compile `root` and everything beneath it into a single ordered plan."""
        return Plan(steps=self.compile_node(root, context))

    def compile_node(self, node: Node, context: CompileContext) -> tuple[Step, ...]:
        handler = self._handlers.get(type(node))
        if handler is None:
            raise CompilationError(f"Unsupported declarative node: {type(node).__name__}.")
        return handler(node, context)

    def _compile_children(self, nodes: Iterable[Node], context: CompileContext) -> list[Step]:
        steps: list[Step] = []
        for node in nodes:
            steps.extend(self.compile_node(node, context))
        return steps

    # ---------- instance ----------

    def _compile_instance(self, node: Instance, context: CompileContext) -> tuple[Step, ...]:
        if node.name is not None:
            instance_name = _expand_name(node.name, context, "Instance")
        else:
            instance_name = context.require_instance_name()
        scoped = context.with_instance(instance_name)

        children: list[Node] = []
        if node.distributor is not None:
            children.append(node.distributor)
        if node.publisher is not None:
            children.append(node.publisher)
        children.extend(node.databases)
        return tuple(self._compile_children(children, scoped))

    # ---------- database ----------

    def _compile_database(self, node: Database, context: CompileContext) -> tuple[Step, ...]:
        instance_name = context.require_instance_name()
        database_name = _expand_name(node.name, context, "Database")
        scoped = context.with_database(database_name)

        steps: list[Step] = [DatabaseStep(instance_name=instance_name, database_name=database_name)]

        if node.package is not None:
            steps.extend(self.compile_node(node.package, scoped))

        property_steps = self._compile_children(node.extended_properties, scoped)
        _reject_duplicates(
            (step.name for step in property_steps if isinstance(step, DatabaseExtendedPropertyStep)),
            "Extended property",
            f"database {database_name}",
        )
        steps.extend(property_steps)

        if node.publications:
            steps.append(EnablePublishingStep(instance_name=instance_name, database_name=database_name))
            steps.extend(self._compile_children(node.publications, scoped))

        return tuple(steps)

    def _compile_package(self, node: DatabasePackage, context: CompileContext) -> tuple[Step, ...]:
        source_path = node.source.expand(context).strip()
        if not source_path:
            raise CompilationError("Database package source expanded to an empty path.")
        suffix = PurePath(source_path).suffix.lower()
        if suffix not in _RECOGNISED_PACKAGE_SUFFIXES:
            raise CompilationError(
                f"Database package {source_path!r} has an unrecognised format "
                f"(expected one of: {', '.join(sorted(_RECOGNISED_PACKAGE_SUFFIXES))})."
            )

        properties = (
            ("BlockOnPossibleDataLoss", str(node.block_on_possible_data_loss)),
            ("DropObjectsNotInSource", str(node.drop_objects_not_in_source)),
        )
        variables = tuple(
            (name, expression.expand(context))
            for name, expression in sorted(node.variables.items())
        )
        return (
            DatabasePackageStep(
                instance_name=context.require_instance_name(),
                database_name=context.require_database_name(),
                source_path=source_path,
                properties=properties,
                variables=variables,
            ),
        )

    def _compile_extended_property(
        self, node: DatabaseExtendedProperty, context: CompileContext
    ) -> tuple[Step, ...]:
        return (
            DatabaseExtendedPropertyStep(
                instance_name=context.require_instance_name(),
                database_name=context.require_database_name(),
                name=_expand_name(node.name, context, "Extended property"),
                value=node.value.expand(context),
            ),
        )

    # ---------- replication roles ----------

    def _compile_distributor(self, node: Distributor, context: CompileContext) -> tuple[Step, ...]:
        instance_name = context.require_instance_name()
        database_name = (
            _expand_name(node.database_name, context, "Distribution database")
            if node.database_name is not None
            else DEFAULT_DISTRIBUTION_DATABASE_NAME
        )

        _check_retention("minimum retention", node.minimum_retention)
        _check_retention("maximum retention", node.maximum_retention)
        _check_retention("history retention", node.history_retention)
        if (
            node.minimum_retention is not None
            and node.maximum_retention is not None
            and node.minimum_retention > node.maximum_retention
        ):
            raise CompilationError(
                f"Distributor minimum retention ({node.minimum_retention}) exceeds "
                f"maximum retention ({node.maximum_retention})."
            )

        admin_password = expand_optional(node.admin_password, context)
        data_path = expand_optional(node.data_path, context)
        logs_path = expand_optional(node.logs_path, context)
        steps: list[Step] = [
            DistributorStep(
                instance_name=instance_name,
                database_name=database_name,
                admin_password=admin_password,
                data_path=data_path,
                logs_path=logs_path,
                log_file_size=node.log_file_size,
                minimum_retention=node.minimum_retention,
                maximum_retention=node.maximum_retention,
                history_retention=node.history_retention,
            ),
            DistributionDatabaseStep(
                instance_name=instance_name,
                database_name=database_name,
                minimum_retention=node.minimum_retention,
                maximum_retention=node.maximum_retention,
                history_retention=node.history_retention,
                data_path=data_path,
                logs_path=logs_path,
                log_file_size=node.log_file_size,
            ),
        ]
        if admin_password is not None:
            steps.append(
                DistributorPasswordStep(instance_name=instance_name, admin_password=admin_password)
            )
        steps.append(
            SnapshotFolderStep(
                instance_name=instance_name,
                database_name=database_name,
                snapshot_path=expand_optional(node.snapshot_path, context),
            )
        )
        steps.append(DistributorDirectoryAclStep(instance_name=instance_name))
        return tuple(steps)

    def _compile_publisher(self, node: Publisher, context: CompileContext) -> tuple[Step, ...]:
        distributor_name = (
            _expand_name(node.distributor_instance_name, context, "Distributor instance")
            if node.distributor_instance_name is not None
            else None
        )
        distribution_database = (
            _expand_name(node.distribution_database, context, "Distribution database")
            if node.distribution_database is not None
            else DEFAULT_DISTRIBUTION_DATABASE_NAME
        )
        return (
            PublisherStep(
                instance_name=context.require_instance_name(),
                distribution_database=distribution_database,
                distributor_name=distributor_name,
                admin_password=expand_optional(node.admin_password, context),
                working_directory=expand_optional(node.working_directory, context),
            ),
        )

    # ---------- publications ----------

    def _compile_publication(self, node: Publication, context: CompileContext) -> tuple[Step, ...]:
        instance_name = context.require_instance_name()
        database_name = context.require_database_name()
        publication_name = _expand_name(node.name, context, "Publication")
        scoped = context.with_publication(publication_name)

        article_steps = self._compile_children(node.articles, scoped)
        _reject_duplicates(
            (step.article_name for step in article_steps if isinstance(step, PublicationArticleStep)),
            "Article",
            f"publication {publication_name}",
        )

        return (
            PublicationStep(
                instance_name=instance_name,
                database_name=database_name,
                publication_name=publication_name,
                publication_type=node.publication_type,
                publication_description=node.publication_description,
            ),
            *article_steps,
        )

    def _compile_article(self, node: PublicationArticle, context: CompileContext) -> tuple[Step, ...]:
        return (
            PublicationArticleStep(
                instance_name=context.require_instance_name(),
                database_name=context.require_database_name(),
                publication_name=context.require_publication_name(),
                article_name=_expand_name(node.name, context, "Article"),
                article_type=node.article_type,
                source_owner=node.source_owner,
            ),
        )
