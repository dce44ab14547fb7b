"""
Field, taxonomy and relation merging.

A record may carry data in the flat v3 shape (fields and taxonomies as
top-level keys, translations in ``<locale>data`` side-channels), in the
nested v4 shape (``fields`` and ``taxonomies`` sub-mappings), or remnants
of both. There is no version flag, so every merge step runs for every
record and only picks up what it recognises.

Everything here mutates the in-memory content only; relations are staged
on the session and nothing is flushed.
"""

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List, Optional

from ..models import CanonicalContent, ContentTypeSchema, FieldDefinition, Relation, TaxonomyAssignment
from .context import ImportContext
from .record import RecordView

# Two letters, optionally followed by a 2-3 letter region or script
LOCALE_KEY_PATTERN = re.compile(r'^[a-z]{2}([_-][a-z]{2,3})?$', re.IGNORECASE)


def is_localised_value(definition: Optional[FieldDefinition], value: Any) -> bool:
    """
    Decide whether a nested field value is a map of locale -> value.

    The value qualifies when the field is localizable and every key looks
    like a language tag. This is a heuristic: a localizable field whose real
    value is a mapping with keys such as "id" or "nl" is read as
    translations. Empty mappings (and empty lists) qualify and set nothing.
    """
    if definition is None or not definition.localize:
        return False

    if isinstance(value, Mapping):
        return all(isinstance(key, str) and LOCALE_KEY_PATTERN.match(key) for key in value)

    if isinstance(value, Sequence) and not isinstance(value, str):
        # List keys are integers, so only an empty list passes
        return len(value) == 0

    return False


def _decode_locale_data(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)
    if not isinstance(raw, str):
        return {}
    try:
        decoded = json.loads(raw)
    except ValueError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


def merge_flat_fields(context: ImportContext, schema: ContentTypeSchema,
                      record: RecordView, content: CanonicalContent) -> None:
    """
    Set every top-level key declared as a field, then overlay translations
    from ``<locale>data`` side-channels for the available locales.
    """
    locale_data = None

    for key, item in record.items():
        if not schema.has_field(key):
            continue

        content.set_field_value(key, item)

        if not context.available_locales or not schema.is_localizable(key):
            continue

        if locale_data is None:
            locale_data = {
                locale: _decode_locale_data(record.get(f"{locale}data"))
                for locale in context.available_locales
            }

        for locale, localized_fields in locale_data.items():
            if localized_fields.get(key) is not None:
                content.set_field_value(key, localized_fields[key], locale)


def merge_nested_fields(schema: ContentTypeSchema, record: RecordView,
                        content: CanonicalContent) -> None:
    """Set every key under ``fields`` declared as a field."""
    for key, item in record.mapping("fields").items():
        if not schema.has_field(key):
            continue

        if is_localised_value(schema.fields[key], item):
            if isinstance(item, Mapping):
                for locale, value in item.items():
                    content.set_field_value(key, value, locale)
        else:
            content.set_field_value(key, item)


def merge_flat_taxonomies(schema: ContentTypeSchema, record: RecordView,
                          content: CanonicalContent) -> None:
    """
    Assign taxonomies from top-level ``[{slug: ...}, ...]`` lists.

    Slugs that are empty or not an option of the taxonomy are skipped.
    """
    for key, item in record.items():
        if not schema.has_taxonomy(key):
            continue
        if not isinstance(item, Sequence) or isinstance(item, str):
            continue

        taxonomy = schema.taxonomies[key]
        for entry in item:
            if not isinstance(entry, Mapping):
                continue
            slug = entry.get("slug")
            if slug is None or slug == "":
                continue
            # YAML decodes numeric slugs such as years to int
            slug = str(slug)
            name = taxonomy.option_name(slug)
            if name is not None:
                content.add_taxonomy(TaxonomyAssignment(taxonomy=key, slug=slug, name=name))


def merge_nested_taxonomies(schema: ContentTypeSchema, record: RecordView,
                            content: CanonicalContent) -> None:
    """
    Assign taxonomies from the ``taxonomies`` sub-mapping of slug -> name
    pairs. These exports are already curated, so options are not checked.
    """
    for key, item in record.mapping("taxonomies").items():
        if not schema.has_taxonomy(key) or not isinstance(item, Mapping):
            continue

        for slug, name in item.items():
            if slug:
                content.add_taxonomy(TaxonomyAssignment(
                    taxonomy=key,
                    slug=str(slug),
                    name=str(name) if name is not None else str(slug)
                ))


def merge_fields_and_taxonomies(context: ImportContext, schema: ContentTypeSchema,
                                record: RecordView, content: CanonicalContent) -> None:
    """Run both generations' field and taxonomy merges, flat first."""
    merge_flat_fields(context, schema, record, content)
    merge_flat_taxonomies(schema, record, content)
    merge_nested_fields(schema, record, content)
    merge_nested_taxonomies(schema, record, content)


def merge_relations(context: ImportContext, schema: ContentTypeSchema, record: RecordView,
                    content: CanonicalContent, session) -> List[Relation]:
    """
    Replace the relations of ``content`` with those in the record.

    As soon as one declared relation key is present, every stored relation
    of the item is removed, whatever its key and in both directions, so
    relations other items hold to it go too. References are "type/slug"
    strings; those whose type or target cannot be found are skipped.

    Args:
        session: Unit of work providing find_relations/find_content/persist/remove

    Returns:
        The new relations, in input order
    """
    created: List[Relation] = []
    replaced = False

    for key in schema.relations:
        references = record.get(key)
        if references is None:
            continue

        if not replaced:
            for current in session.find_relations(content, bidirectional=True):
                session.remove(current)
            replaced = True

        if isinstance(references, str):
            references = [references]
        if not isinstance(references, Sequence):
            continue

        for reference in references:
            target = _resolve_reference(context, session, reference)
            if target is None:
                logging.debug(f"Relation target '{reference}' not found; skipped")
                continue
            relation = Relation(key=key, source=content, target=target, position=len(created))
            session.persist(relation)
            created.append(relation)

    return created


def _resolve_reference(context: ImportContext, session, reference: Any) -> Optional[CanonicalContent]:
    if not isinstance(reference, str):
        return None
    parts = reference.split('/')
    if len(parts) < 2:
        return None

    target_type = context.registry.get_content_type(parts[0])
    if target_type is None:
        return None
    return session.find_content(target_type.key, parts[1])
