"""
Export file importer for Conimex.

Reads a YAML or JSON export file produced by either platform generation.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .base import BaseImporter


class ExportFileImporter(BaseImporter):
    """
    Importer for ``.yaml``, ``.yml`` and ``.json`` export files.
    """

    SUPPORTED_SUFFIXES = (".yaml", ".yml", ".json")

    def __init__(self, export_path: str):
        self.export_path = Path(export_path)

        if self.export_path.suffix.lower() not in self.SUPPORTED_SUFFIXES:
            raise ValueError(
                f"Unsupported export format '{self.export_path.suffix}'. "
                f"Expected one of: {', '.join(self.SUPPORTED_SUFFIXES)}"
            )

        logging.info(f"Initialized export file importer for: {self.export_path}")

    def get_document(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Raises:
            FileNotFoundError: if the export file does not exist
            ValueError: if the file does not decode to a mapping
        """
        if not self.export_path.is_file():
            raise FileNotFoundError(f"Export file not found: {self.export_path}")

        with open(self.export_path, 'r', encoding='utf-8') as f:
            if self.export_path.suffix.lower() == ".json":
                document = json.load(f)
            else:
                document = yaml.safe_load(f)

        if not isinstance(document, dict):
            raise ValueError(
                f"Export file {self.export_path} must contain a mapping of blocks, "
                f"got {type(document).__name__}"
            )

        counts = {key: len(value) for key, value in document.items() if isinstance(value, list)}
        logging.info(f"Loaded export document with blocks: {counts}")
        return document
