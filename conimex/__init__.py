"""
Conimex: content import engine.

Normalizes v3 and v4 content exports into one canonical content model with
idempotent, slug-keyed upserts.
"""

__version__ = "0.1.0"
__author__ = "Conimex Project"

# Import main components
from .config import ConfigManager
from .database import DatabaseManager, Session
from .models import CanonicalContent, TaxonomyAssignment, Relation, UserAccount, ContentTypeSchema
from .schema import SchemaRegistry, SchemaResolver
from .importers import BaseImporter, MockImporter, ExportFileImporter
from .ingest import ImportContext, DocumentImporter
from .reporting import ImportStats, LoggingReporter

__all__ = [
    "ConfigManager",
    "DatabaseManager",
    "Session",
    "CanonicalContent",
    "TaxonomyAssignment",
    "Relation",
    "UserAccount",
    "ContentTypeSchema",
    "SchemaRegistry",
    "SchemaResolver",
    "BaseImporter",
    "MockImporter",
    "ExportFileImporter",
    "ImportContext",
    "DocumentImporter",
    "ImportStats",
    "LoggingReporter"
]
