"""Export document sources."""

from .base import BaseImporter
from .mock import MockImporter
from .export_file import ExportFileImporter

__all__ = ["BaseImporter", "MockImporter", "ExportFileImporter"]
