"""
Document-level import for Conimex.

Walks an export document block by block. v3 exports have one block per
content type; v4 exports have a single ``content`` block whose records name
their own type.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Mapping as MappingType, Optional

from ..errors import MissingAuthorError, UndefinedContentTypeError
from ..reporting import ImportStats, Reporter
from .content import ContentImporter
from .context import ImportContext
from .record import view
from .users import UserImporter

META_KEY = "__bolt_export_meta"
USERS_KEY = "__users"


class DocumentImporter:
    """
    Dispatches the blocks of an export document to the user and content
    importers, one record at a time.
    """

    def __init__(self, context: ImportContext, session, reporter: Optional[Reporter] = None):
        """
        Args:
            context: The read-only import context
            session: Unit of work shared by all importers
            reporter: Progress/diagnostic sink (silent if omitted)
        """
        self.context = context
        self.session = session
        self.reporter = reporter or Reporter()
        self.content_importer = ContentImporter(context, session)
        self.user_importer = UserImporter(context, session, self.reporter)

    def import_document(self, document: MappingType[str, Any]) -> ImportStats:
        """
        Import every block of ``document``.

        A block whose content type is not declared is aborted and reported;
        the remaining blocks still run.

        Raises:
            MissingAuthorError: new content needs an author and no user exists
        """
        stats = ImportStats()

        for block_key, records in document.items():
            if block_key == META_KEY:
                continue

            if block_key == USERS_KEY:
                if self.context.skip_users:
                    logging.info("Skipping users block")
                    continue
                self.user_importer.import_users(records, stats)
                continue

            self.import_block(block_key, records, stats)

        return stats

    def import_block(self, block_key: str, records: Any, stats: ImportStats) -> bool:
        """
        Import one content block.

        Returns:
            False if the block was aborted
        """
        if not isinstance(records, Sequence) or isinstance(records, (str, bytes)):
            message = f"Block '{block_key}' is not a list of records"
            self.reporter.error(message)
            stats.record_aborted(block_key, message)
            return False

        self.reporter.comment(f"Importing ContentType {block_key}")
        self.reporter.start_progress(len(records))

        for index, raw in enumerate(records):
            if not isinstance(raw, Mapping):
                logging.warning(f"Skipping non-mapping record #{index} in block '{block_key}'")
                stats.record_skipped(block_key)
                self.reporter.advance()
                continue

            try:
                result = self.content_importer.import_record(block_key, view(raw))
            except UndefinedContentTypeError as e:
                self.reporter.error(str(e))
                stats.record_aborted(block_key, str(e))
                return False
            except MissingAuthorError as e:
                self.reporter.error(str(e))
                stats.record_error(str(e))
                raise

            if result is None:
                stats.record_skipped(block_key)
            else:
                content, created = result
                if created:
                    stats.record_created(content.content_type)
                else:
                    stats.record_updated(content.content_type)

            self.release(index)
            self.reporter.advance()

        self.reporter.finish_progress()
        return True

    def release(self, index: int) -> bool:
        """
        Between-records hook: clear the unit of work after the first record
        and then every ``clear_interval`` records.

        Returns:
            True if the session was cleared
        """
        interval = self.context.clear_interval
        if interval <= 0 or index % interval != 0:
            return False
        self.session.clear()
        return True
