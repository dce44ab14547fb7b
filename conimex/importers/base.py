"""
Base importer interface for Conimex.

This module defines the abstract interface that all export document
sources must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class BaseImporter(ABC):
    """
    Abstract base class for all export document sources.

    Each source decodes an export (YAML file, JSON file, hardcoded fixture)
    into an ExportDocument: a mapping of block key to a list of raw records.
    """

    @abstractmethod
    def get_document(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Retrieve the decoded export document.

        Returns:
            Mapping of content type key (or reserved key) to raw records
        """
        pass
