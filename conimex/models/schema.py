"""
Schema models for Conimex.

These describe which content types, fields, taxonomies and relations are
legal. They are built once by the schema registry and only read during an
import.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class FieldDefinition(BaseModel):
    """A field declared on a content type."""

    name: str = Field(..., description="The field key as used in exports")
    type: str = Field("text", description="The declared field type (text, html, image, ...)")
    localize: bool = Field(False, description="Whether the field holds per-locale values")


class TaxonomyDefinition(BaseModel):
    """
    A taxonomy (classification axis) and the option values it allows.
    """

    key: str = Field(..., description="The taxonomy key")
    slug: str = Field(..., description="The plural slug of the taxonomy")
    singular_slug: str = Field(..., description="The singular slug of the taxonomy")
    behaves_like: str = Field("tags", description="categories, tags or grouping")
    options: Dict[str, str] = Field(
        default_factory=dict,
        description="Allowed option slugs mapped to their display names"
    )

    def option_name(self, slug: Any) -> Optional[str]:
        """Return the display name for ``slug``, or None if it is not an option."""
        if slug is None or isinstance(slug, (dict, list)):
            return None
        return self.options.get(str(slug))


class RelationDefinition(BaseModel):
    """An outgoing relation declared on a content type."""

    key: str = Field(..., description="The relation key as used in exports")
    multiple: bool = Field(True, description="Whether more than one target is allowed")


class ContentTypeSchema(BaseModel):
    """
    The declared shape of a content type.
    """

    key: str = Field(..., description="The key the content type is declared under")
    name: str = Field(..., description="Human-readable (plural) name")
    slug: str = Field(..., description="The plural slug")
    singular_slug: str = Field(..., description="The singular slug")

    fields: Dict[str, FieldDefinition] = Field(default_factory=dict)
    taxonomies: Dict[str, TaxonomyDefinition] = Field(default_factory=dict)
    relations: Dict[str, RelationDefinition] = Field(default_factory=dict)
    locales: List[str] = Field(default_factory=list)

    def has_field(self, key: Any) -> bool:
        return isinstance(key, str) and key in self.fields

    def has_taxonomy(self, key: Any) -> bool:
        return isinstance(key, str) and key in self.taxonomies

    def is_localizable(self, key: str) -> bool:
        definition = self.fields.get(key)
        return bool(definition and definition.localize)
