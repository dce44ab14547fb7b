"""
Canonical data models for Conimex.

This module defines the normalized content structures that records from
every export generation are merged into.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class FieldValue(BaseModel):
    """
    The value of one field on a content item: a language-neutral base value
    plus optional per-locale overrides.
    """

    value: Any = Field(
        default=None,
        description="The base (non-localized) value"
    )

    translations: Dict[str, Any] = Field(
        default_factory=dict,
        description="Localized values keyed by locale"
    )


class TaxonomyAssignment(BaseModel):
    """
    A (taxonomy, slug, name) triple attached to one content item.
    """

    taxonomy: str = Field(..., description="The taxonomy key, e.g. 'categories'")
    slug: str = Field(..., description="The option slug")
    name: str = Field(..., description="The display value of the option")


class CanonicalContent(BaseModel):
    """
    The canonical content entity that every imported record is merged into.

    (content_type, slug) is the natural key.
    """

    id: Optional[int] = Field(
        default=None,
        description="Database identifier, assigned when the content is first flushed"
    )

    content_type: str = Field(..., description="Key of the content type")
    slug: str = Field(..., description="Unique within the content type")
    status: str = Field(default="published")
    author_id: Optional[int] = Field(default=None)

    fields: Dict[str, FieldValue] = Field(
        default_factory=dict,
        description="Field values in the order they were first set"
    )

    taxonomies: List[TaxonomyAssignment] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    depublished_at: Optional[datetime] = None

    def set_field_value(self, key: str, value: Any, locale: Optional[str] = None) -> None:
        """
        Set a field value. Without ``locale`` the base value is replaced;
        with ``locale`` only that locale's override is.
        """
        field_value = self.fields.setdefault(key, FieldValue())
        if locale is None:
            field_value.value = value
        else:
            field_value.translations[locale] = value

    def get_field_value(self, key: str, locale: Optional[str] = None) -> Any:
        """
        Return the value of ``key`` for ``locale``, falling back to the base
        value when there is no override for that locale.
        """
        field_value = self.fields.get(key)
        if field_value is None:
            return None
        if locale is not None and locale in field_value.translations:
            return field_value.translations[locale]
        return field_value.value

    def add_taxonomy(self, assignment: TaxonomyAssignment) -> bool:
        """
        Attach a taxonomy assignment unless the same (taxonomy, slug) is
        already attached.

        Returns:
            True if the assignment was added
        """
        for existing in self.get_taxonomies(assignment.taxonomy):
            if existing.slug == assignment.slug:
                return False
        self.taxonomies.append(assignment)
        return True

    def get_taxonomies(self, taxonomy: str) -> List[TaxonomyAssignment]:
        """Return the assignments of one taxonomy, in the order they were added."""
        return [t for t in self.taxonomies if t.taxonomy == taxonomy]


class Relation(BaseModel):
    """
    A directed edge from one content item to another, under a relation key
    declared on the source's content type.
    """

    id: Optional[int] = None
    key: str = Field(..., description="The relation key on the source content type")
    source: CanonicalContent
    target: CanonicalContent
    position: int = Field(default=0, description="Order of the relation within its source")
