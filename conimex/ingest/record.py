"""
Uniform read access to raw export records.

Both export generations decode to mappings, but attributes moved between
key names over time. The accessors here hide those differences; nothing in
this module mutates the underlying record.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, Iterable, Iterator, Tuple

# Attribute name -> keys that have held it, current name first
FALLBACK_KEYS = {
    "created": ("createdAt", "datecreated"),
    "published": ("publishedAt", "datepublish"),
    "modified": ("modifiedAt", "datechanged"),
    "depublished": ("depublishedAt", "datedepublish"),
    "display_name": ("displayName", "displayname"),
}


class RecordView(ABC):
    """
    Read-only accessor over one raw record.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value under ``key``, or ``default`` only if the key is absent."""

    @abstractmethod
    def has(self, key: str) -> bool:
        """True if ``key`` is present, even when its value is None."""

    @abstractmethod
    def items(self) -> Iterator[Tuple[str, Any]]:
        """Iterate over top-level (key, value) pairs."""

    def first(self, keys: Iterable[str], default: Any = None) -> Any:
        """Return the value of the first present key in ``keys``."""
        for key in keys:
            if self.has(key):
                return self.get(key)
        return default

    def first_truthy(self, keys: Iterable[str]) -> Any:
        """Return the first truthy value among ``keys``, or None."""
        for key in keys:
            value = self.get(key)
            if value:
                return value
        return None

    def attribute(self, name: str, default: Any = None) -> Any:
        """Read a named attribute through its fallback chain (see FALLBACK_KEYS)."""
        return self.first(FALLBACK_KEYS[name], default)

    def mapping(self, key: str) -> Mapping:
        """Return the sub-mapping under ``key``, or an empty mapping."""
        value = self.get(key)
        return value if isinstance(value, Mapping) else {}

    def content_type(self, default: Any = None) -> Any:
        return self.get("contentType", default)

    def slug(self) -> Any:
        """
        The record's slug, from ``slug`` or ``fields.slug``.

        Older exports hold a string, newer ones a one-element list.
        """
        slug = self.get("slug", self.mapping("fields").get("slug"))
        if isinstance(slug, Sequence) and not isinstance(slug, str):
            slug = slug[0] if len(slug) > 0 else None
        return slug


class MappingRecordView(RecordView):
    """RecordView over a decoded mapping (YAML or JSON object)."""

    def __init__(self, record: Mapping):
        if not isinstance(record, Mapping):
            raise TypeError(f"Expected a mapping record, got {type(record).__name__}")
        self._record = record

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._record:
            return self._record[key]
        return default

    def has(self, key: str) -> bool:
        return key in self._record

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._record.items())

    def __repr__(self) -> str:
        return f"MappingRecordView(keys={list(self._record)[:8]})"


def view(record: Any) -> RecordView:
    """Wrap a raw record in the matching RecordView."""
    if isinstance(record, RecordView):
        return record
    return MappingRecordView(record)
