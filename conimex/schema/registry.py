"""
Schema registry for Conimex.

Loads the content type and taxonomy declarations (``contenttypes.yaml`` and
``taxonomy.yaml``) once and answers lookups by key, slug or singular slug.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ..errors import SchemaConfigError
from ..models import ContentTypeSchema, FieldDefinition, TaxonomyDefinition, RelationDefinition


class SchemaRegistry:
    """
    Read-only registry of declared content types and taxonomies.
    """

    def __init__(
        self,
        contenttypes: Optional[Mapping[str, Any]] = None,
        taxonomies: Optional[Mapping[str, Any]] = None
    ):
        """
        Build the registry from decoded configuration mappings.

        Args:
            contenttypes: Mapping of content type key to its declaration
            taxonomies: Mapping of taxonomy key to its declaration
        """
        self._taxonomies: Dict[str, TaxonomyDefinition] = {}
        self._content_types: Dict[str, ContentTypeSchema] = {}

        for key, definition in (taxonomies or {}).items():
            self._taxonomies[key] = self._build_taxonomy(key, definition or {})

        for key, definition in (contenttypes or {}).items():
            self._content_types[key] = self._build_content_type(key, definition or {})

    @classmethod
    def from_files(cls, contenttypes_path: str, taxonomy_path: Optional[str] = None) -> "SchemaRegistry":
        """
        Load the registry from YAML files.

        Args:
            contenttypes_path: Path to contenttypes.yaml
            taxonomy_path: Optional path to taxonomy.yaml

        Raises:
            SchemaConfigError: if a file is missing or is not a YAML mapping
        """
        contenttypes = cls._load_yaml(Path(contenttypes_path))
        taxonomies = cls._load_yaml(Path(taxonomy_path)) if taxonomy_path else {}
        registry = cls(contenttypes, taxonomies)
        logging.info(
            f"Schema loaded: {len(registry._content_types)} content types, "
            f"{len(registry._taxonomies)} taxonomies"
        )
        return registry

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise SchemaConfigError(f"Schema file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise SchemaConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise SchemaConfigError(f"Expected a mapping at the top of {path}")
        return data

    def _build_taxonomy(self, key: str, definition: Mapping[str, Any]) -> TaxonomyDefinition:
        options = definition.get('options') or {}
        # Options may be a plain list, in which case each value is its own slug
        if isinstance(options, (list, tuple)):
            options = {str(option): str(option) for option in options}

        return TaxonomyDefinition(
            key=key,
            slug=definition.get('slug', key),
            singular_slug=definition.get('singular_slug', definition.get('slug', key)),
            behaves_like=definition.get('behaves_like', 'tags'),
            options={str(slug): str(name) for slug, name in options.items()}
        )

    def _build_content_type(self, key: str, definition: Mapping[str, Any]) -> ContentTypeSchema:
        fields = {}
        for name, field in (definition.get('fields') or {}).items():
            field = field or {}
            fields[name] = FieldDefinition(
                name=name,
                type=field.get('type', 'text'),
                localize=bool(field.get('localize', False))
            )

        taxonomy_keys = definition.get('taxonomy') or []
        if isinstance(taxonomy_keys, str):
            taxonomy_keys = [taxonomy_keys]

        taxonomies = {}
        for taxonomy_key in taxonomy_keys:
            taxonomy = self.get_taxonomy(taxonomy_key)
            if taxonomy is None:
                logging.warning(f"ContentType '{key}' uses undeclared taxonomy '{taxonomy_key}'")
                taxonomy = TaxonomyDefinition(key=taxonomy_key, slug=taxonomy_key, singular_slug=taxonomy_key)
            taxonomies[taxonomy.key] = taxonomy

        relations = {}
        for name, relation in (definition.get('relations') or {}).items():
            relation = relation or {}
            relations[name] = RelationDefinition(key=name, multiple=bool(relation.get('multiple', True)))

        slug = definition.get('slug', key)
        return ContentTypeSchema(
            key=key,
            name=definition.get('name', key),
            slug=slug,
            singular_slug=definition.get('singular_slug', slug),
            fields=fields,
            taxonomies=taxonomies,
            relations=relations,
            locales=list(definition.get('locales') or [])
        )

    def get_content_type(self, name: Any) -> Optional[ContentTypeSchema]:
        """
        Look up a content type by key, slug or singular slug.

        Returns:
            The declared schema, or None if no content type matches
        """
        if not isinstance(name, str) or not name:
            return None
        if name in self._content_types:
            return self._content_types[name]
        for content_type in self._content_types.values():
            if name in (content_type.slug, content_type.singular_slug):
                return content_type
        return None

    def get_taxonomy(self, name: Any) -> Optional[TaxonomyDefinition]:
        """Look up a taxonomy by key, slug or singular slug."""
        if not isinstance(name, str) or not name:
            return None
        if name in self._taxonomies:
            return self._taxonomies[name]
        for taxonomy in self._taxonomies.values():
            if name in (taxonomy.slug, taxonomy.singular_slug):
                return taxonomy
        return None

    def list_content_types(self):
        return list(self._content_types)


class SchemaResolver:
    """
    Resolves the content type a record belongs to.

    v4 exports put every record in one generic block and name the real type
    per record, so an explicit override wins over the block key.
    """

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry

    def resolve(self, block_key: str, override: Optional[str] = None) -> Optional[ContentTypeSchema]:
        """
        Args:
            block_key: The key of the export block the record lives under
            override: The record's own ``contentType``, if any

        Returns:
            The schema, or None when the content type is not declared
        """
        return self.registry.get_content_type(override if override else block_key)
