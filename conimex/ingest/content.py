"""
Content upsert for Conimex.

Each record goes through: lookup by (content type, slug), create or reuse,
field and taxonomy merge, relation merge, timestamps, and commit.
"""

import logging
from typing import Optional, Tuple

from ..errors import MissingAuthorError, UndefinedContentTypeError
from ..models import CanonicalContent, ContentTypeSchema
from ..schema import SchemaResolver
from .context import ImportContext
from .dates import parse_datetime, utc_now
from .merger import merge_fields_and_taxonomies, merge_relations
from .owner import OwnerResolver
from .record import RecordView


class ContentImporter:
    """
    Creates or updates one CanonicalContent per record and commits it.
    """

    def __init__(self, context: ImportContext, session):
        """
        Args:
            context: The read-only import context
            session: The unit of work content is loaded from and flushed to
        """
        self.context = context
        self.session = session
        self.resolver = SchemaResolver(context.registry)
        self.owners = OwnerResolver(session)

    def resolve_schema(self, block_key: str, record: RecordView) -> ContentTypeSchema:
        """
        Raises:
            UndefinedContentTypeError: if the content type is not declared
        """
        requested = record.content_type(block_key)
        schema = self.resolver.resolve(block_key, record.content_type())
        if schema is None:
            raise UndefinedContentTypeError(requested)
        return schema

    def import_record(self, block_key: str, record: RecordView) -> Optional[Tuple[CanonicalContent, bool]]:
        """
        Upsert one record.

        Returns:
            (content, created) or None when the record has no slug

        Raises:
            UndefinedContentTypeError: if the content type is not declared
            MissingAuthorError: if the content is new and no user exists
        """
        schema = self.resolve_schema(block_key, record)

        slug = record.slug()
        if not slug:
            logging.warning(f"Skipping a '{schema.key}' record without a slug")
            return None
        slug = str(slug)

        content = self.session.find_content(schema.key, slug)
        created = content is None

        if created:
            author = self.owners.resolve(record)
            if author is None:
                raise MissingAuthorError(schema.key, slug)
            content = CanonicalContent(
                content_type=schema.key,
                slug=slug,
                status="published",
                author_id=author.id
            )

        merge_fields_and_taxonomies(self.context, schema, record, content)
        merge_relations(self.context, schema, record, content, self.session)
        self.apply_timestamps(record, content)

        self.session.persist(content)
        self.session.flush()

        logging.debug(f"{'Created' if created else 'Updated'} {schema.key}/{slug}")
        return content, created

    @staticmethod
    def apply_timestamps(record: RecordView, content: CanonicalContent) -> None:
        """
        Set created/published/modified (missing means now) and set or clear
        depublished_at.
        """
        now = utc_now()
        content.created_at = parse_datetime(record.attribute("created"), now)
        content.published_at = parse_datetime(record.attribute("published"), now)
        content.modified_at = parse_datetime(record.attribute("modified"), now)

        # Without an explicit value depublished_at must be empty, not "now"
        depublished = record.first_truthy(("depublishedAt", "datedepublish"))
        content.depublished_at = parse_datetime(depublished) if depublished else None
