"""The record normalization and upsert engine."""

from .context import ImportContext
from .record import RecordView, MappingRecordView, view
from .merger import is_localised_value, merge_fields_and_taxonomies, merge_relations
from .owner import OwnerResolver
from .content import ContentImporter
from .users import UserImporter
from .runner import DocumentImporter

__all__ = [
    "ImportContext",
    "RecordView",
    "MappingRecordView",
    "view",
    "is_localised_value",
    "merge_fields_and_taxonomies",
    "merge_relations",
    "OwnerResolver",
    "ContentImporter",
    "UserImporter",
    "DocumentImporter"
]
