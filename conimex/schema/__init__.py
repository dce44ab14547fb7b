"""Content type and taxonomy declarations."""

from .registry import SchemaRegistry, SchemaResolver

__all__ = ["SchemaRegistry", "SchemaResolver"]
