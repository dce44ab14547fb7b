"""
Mock importer for testing Conimex.

This module provides a hardcoded export document, together with the schema
it is written against, for exercising the pipeline without a real export.
"""

import json
from typing import Any, Dict, List

from .base import BaseImporter

SAMPLE_TAXONOMIES: Dict[str, Any] = {
    "categories": {
        "slug": "categories",
        "singular_slug": "category",
        "behaves_like": "categories",
        "options": {"news": "News", "events": "Events", "movies": "Movies"},
    },
    "tags": {
        "slug": "tags",
        "singular_slug": "tag",
        "behaves_like": "tags",
        "options": ["winter", "summer"],
    },
}

SAMPLE_CONTENTTYPES: Dict[str, Any] = {
    "pages": {
        "name": "Pages",
        "singular_name": "Page",
        "singular_slug": "page",
        "fields": {
            "title": {"type": "text", "localize": True},
            "slug": {"type": "slug"},
            "body": {"type": "html", "localize": True},
        },
        "locales": ["en", "nl"],
    },
    "entries": {
        "name": "Entries",
        "singular_name": "Entry",
        "singular_slug": "entry",
        "fields": {
            "title": {"type": "text"},
            "slug": {"type": "slug"},
            "teaser": {"type": "textarea"},
        },
        "taxonomy": ["categories", "tags"],
        "relations": {"pages": {"multiple": True}},
    },
}


class MockImporter(BaseImporter):
    """
    Mock importer that returns a hardcoded export document.

    The document contains a users block, a v3-style ``pages`` block with a
    localization side-channel, and a v4-style ``content`` block of entries
    that relate to the pages.
    """

    def __init__(self):
        """Initialize the mock importer with test data."""
        self._document = self._create_test_document()

    def get_document(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Return the hardcoded export document.
        """
        return self._document

    def _create_test_document(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "__bolt_export_meta": {"date": "2020-06-01 12:00:00", "version": "3.7.1"},
            "__users": [
                {
                    "username": "admin",
                    "displayname": "Admin",
                    "email": "admin@example.org",
                    "password": "$2y$13$abcdefghijklmnopqrstuv",
                    "roles": ["ROLE_ADMIN"],
                    "enabled": True,
                },
            ],
            # v3: one block per content type, flat records
            "pages": [
                {
                    "id": 1,
                    "slug": "about",
                    "ownerid": 1,
                    "datecreated": "2019-01-01 10:00:00",
                    "datepublish": "2019-01-02 10:00:00",
                    "datechanged": "2019-01-03 10:00:00",
                    "datedepublish": None,
                    "title": "About us",
                    "body": "<p>Who we are</p>",
                    "nldata": json.dumps({"title": "Over ons", "body": "<p>Wie we zijn</p>"}),
                },
                {
                    "id": 2,
                    "slug": "contact",
                    "ownerid": 1,
                    "datecreated": "2019-02-01 10:00:00",
                    "datepublish": "2019-02-02 10:00:00",
                    "datechanged": "2019-02-03 10:00:00",
                    "title": "Contact",
                    "body": "<p>Write to us</p>",
                },
            ],
            # v4: one generic block, nested records
            "content": [
                {
                    "contentType": "entries",
                    "slug": ["first-entry"],
                    "createdAt": "2020-03-01T09:00:00+00:00",
                    "publishedAt": "2020-03-01T09:00:00+00:00",
                    "modifiedAt": "2020-03-02T09:00:00+00:00",
                    "depublishedAt": None,
                    "fields": {
                        "title": "First entry",
                        "slug": ["first-entry"],
                        "teaser": "Hello world",
                    },
                    "taxonomies": {
                        "categories": {"news": "News"},
                        "tags": {"winter": "winter"},
                    },
                    "pages": ["pages/about", "pages/contact"],
                },
            ],
        }
