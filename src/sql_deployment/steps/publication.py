"""Steps that publish a database: enable publishing, publications, articles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.enums import ArticleType, PublicationType
from src.sql_deployment.identifiers import format_publication_target
from src.sql_deployment.steps.base import DatabaseScopedStep

if TYPE_CHECKING:
    from src.sql_deployment.context import ExecuteContext


@dataclass(frozen=True)
class EnablePublishingStep(DatabaseScopedStep):
    """Enable the database for publishing."""

    def should_execute(self, context: ExecuteContext) -> bool:
        with context.server(self.instance_name) as server:
            return not server.is_database_published(self.database_name)

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name) as server:
            context.logger.info("Enabling publishing on %s.", self.target)
            server.enable_publishing(self.database_name)


@dataclass(frozen=True)
class PublicationStep(DatabaseScopedStep):
    """Create the publication (and its snapshot agent) if it does not exist."""

    publication_name: str
    publication_type: PublicationType = PublicationType.TRANSACTIONAL
    publication_description: str = ""

    @property
    def target(self) -> str:
        return format_publication_target(
            self.instance_name, self.database_name, self.publication_name
        )

    def should_execute(self, context: ExecuteContext) -> bool:
        if not self._database_exists(context):
            return True
        with context.server(self.instance_name, self.database_name) as server:
            return not server.publication_exists(self.publication_name)

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name, self.database_name) as server:
            context.logger.info("Creating publication %s.", self.target)
            server.add_publication(
                self.publication_name, self.publication_type, self.publication_description
            )


@dataclass(frozen=True)
class PublicationArticleStep(DatabaseScopedStep):
    """Add one article to a publication if it is not already published."""

    publication_name: str
    article_name: str
    article_type: ArticleType = ArticleType.TABLE
    source_owner: str = "dbo"

    @property
    def target(self) -> str:
        return format_publication_target(
            self.instance_name, self.database_name, self.publication_name
        )

    @property
    def description(self) -> str:
        return f"{type(self).__name__} {self.article_name!r} on {self.target}"

    def should_execute(self, context: ExecuteContext) -> bool:
        if not self._database_exists(context):
            return True
        with context.server(self.instance_name, self.database_name) as server:
            return not server.article_exists(self.publication_name, self.article_name)

    def execute(self, context: ExecuteContext) -> None:
        with context.server(self.instance_name, self.database_name) as server:
            context.logger.info(
                "Adding %s article %s to %s.",
                self.article_type.name.lower(),
                self.article_name,
                self.target,
            )
            server.add_article(
                self.publication_name, self.article_name, self.article_type, self.source_owner
            )
