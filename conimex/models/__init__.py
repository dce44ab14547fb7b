"""Data models for Conimex."""

from .canonical import CanonicalContent, FieldValue, TaxonomyAssignment, Relation
from .entities import UserAccount
from .schema import ContentTypeSchema, FieldDefinition, TaxonomyDefinition, RelationDefinition

__all__ = [
    "CanonicalContent",
    "FieldValue",
    "TaxonomyAssignment",
    "Relation",
    "UserAccount",
    "ContentTypeSchema",
    "FieldDefinition",
    "TaxonomyDefinition",
    "RelationDefinition"
]
