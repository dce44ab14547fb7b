import pytest

from conimex.database import DatabaseManager, Session
from conimex.importers.mock import SAMPLE_CONTENTTYPES, SAMPLE_TAXONOMIES
from conimex.ingest import DocumentImporter, ImportContext
from conimex.models import UserAccount
from conimex.schema import SchemaRegistry


@pytest.fixture
def registry():
    return SchemaRegistry(SAMPLE_CONTENTTYPES, SAMPLE_TAXONOMIES)


@pytest.fixture
def context(registry):
    return ImportContext(registry=registry, available_locales=("en", "nl"), clear_interval=3)


@pytest.fixture
def db():
    with DatabaseManager(":memory:") as manager:
        manager.initialize_database()
        yield manager


@pytest.fixture
def session(db):
    return Session(db)


@pytest.fixture
def author(session):
    user = UserAccount(username="editor", display_name="Editor", roles=["ROLE_EDITOR"])
    session.persist(user)
    session.flush()
    return user


@pytest.fixture
def runner(context, session):
    return DocumentImporter(context, session)


def page(slug, title, **extra):
    """A v3 (flat) pages record with fixed timestamps."""
    record = {
        "slug": slug,
        "title": title,
        "datecreated": "2019-01-01 10:00:00",
        "datepublish": "2019-01-02 10:00:00",
        "datechanged": "2019-01-03 10:00:00",
    }
    record.update(extra)
    return record


def entry(slug, fields=None, **extra):
    """A v4 (nested) entries record with fixed timestamps."""
    record = {
        "contentType": "entries",
        "slug": [slug],
        "createdAt": "2020-03-01T09:00:00+00:00",
        "publishedAt": "2020-03-01T09:00:00+00:00",
        "modifiedAt": "2020-03-02T09:00:00+00:00",
        "fields": fields or {"title": slug.title()},
    }
    record.update(extra)
    return record
