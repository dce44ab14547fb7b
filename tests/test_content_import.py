"""
Tests for the content upsert engine: block dispatch, field and taxonomy
persistence, relations, timestamps and the unit-of-work release hook.
"""

from datetime import datetime

import pytest

from conftest import entry, page
from conimex.errors import MissingAuthorError, UndefinedContentTypeError
from conimex.importers.mock import MockImporter
from conimex.ingest import ContentImporter, DocumentImporter, ImportContext, view
from conimex.ingest.dates import utc_now
from conimex.models import UserAccount
from conimex.reporting import Reporter
from conimex.schema import SchemaRegistry


class RecordingReporter(Reporter):
    def __init__(self):
        self.comments = []
        self.errors = []

    def comment(self, message):
        self.comments.append(message)

    def error(self, message):
        self.errors.append(message)


def snapshot(db):
    return [content.model_dump() for content in db.list_contents()]


def related_slugs(session, content_type, slug):
    content = session.find_content(content_type, slug)
    return [(r.key, r.target.slug) for r in session.find_relations(content)]


class TestUpsert:
    def test_creates_published_content(self, runner, db, author):
        stats = runner.import_document({"pages": [page("about", "About us")]})

        stored = db.get_content("pages", "about")
        assert stats.created == {"pages": 1}
        assert stored.status == "published"
        assert stored.author_id == author.id
        assert stored.get_field_value("title") == "About us"
        assert stored.get_field_value("slug") == "about"
        assert stored.created_at == datetime(2019, 1, 1, 10, 0, 0)
        assert stored.published_at == datetime(2019, 1, 2, 10, 0, 0)
        assert stored.modified_at == datetime(2019, 1, 3, 10, 0, 0)
        assert stored.depublished_at is None

    def test_reimport_updates_in_place(self, runner, db, author):
        runner.import_document({"pages": [page("about", "About us")]})
        stats = runner.import_document({"pages": [page("about", "About")]})

        assert stats.created == {}
        assert stats.updated == {"pages": 1}
        assert db.count_rows("contents") == 1
        assert db.get_content("pages", "about").get_field_value("title") == "About"

    def test_import_is_idempotent(self, runner, db, author):
        document = {
            "pages": [
                page("about", "About us", body="<p>x</p>", nldata='{"title": "Over ons"}'),
                page("contact", "Contact"),
            ],
            "content": [
                entry("first", {"title": "First", "teaser": "Hi"},
                      taxonomies={"categories": {"news": "News"}},
                      pages=["pages/about", "pages/contact"]),
            ],
        }

        runner.import_document(document)
        first = snapshot(db)
        counts = {table: db.count_rows(table) for table in ("contents", "content_fields", "content_taxonomies", "relations")}

        runner.import_document(document)

        assert snapshot(db) == first
        assert {table: db.count_rows(table) for table in counts} == counts

    def test_existing_author_is_kept(self, runner, db, session, author):
        runner.import_document({"pages": [page("about", "About")]})

        other = UserAccount(username="other")
        session.persist(other)
        session.flush()

        runner.import_document({"pages": [page("about", "About", ownerid=other.id)]})
        assert db.get_content("pages", "about").author_id == author.id

    def test_fields_not_in_the_record_are_kept(self, runner, db, author):
        runner.import_document({"pages": [page("about", "About", body="<p>Body</p>")]})
        runner.import_document({"pages": [page("about", "About again")]})

        stored = db.get_content("pages", "about")
        assert stored.get_field_value("body") == "<p>Body</p>"
        assert stored.get_field_value("title") == "About again"

    def test_record_without_slug_is_skipped(self, runner, db, author):
        stats = runner.import_document({"pages": [{"title": "Nameless"}, page("about", "About")]})

        assert stats.skipped_records == {"pages": 1}
        assert stats.created == {"pages": 1}
        assert db.count_rows("contents") == 1

    def test_non_mapping_record_is_skipped(self, runner, db, author):
        stats = runner.import_document({"pages": ["junk", page("about", "About")]})

        assert stats.skipped_records == {"pages": 1}
        assert db.get_content("pages", "about") is not None

    def test_content_type_by_singular_slug(self, runner, db, author):
        runner.import_document({"content": [entry("one", contentType="entry")]})

        assert db.get_content("entries", "one") is not None

    def test_v3_and_v4_records_land_in_the_same_shape(self, runner, db, author):
        runner.import_document({
            "entries": [{"slug": "flat", "title": "Same", "teaser": "Text"}],
            "content": [entry("nested", {"title": "Same", "teaser": "Text"})],
        })

        flat = db.get_content("entries", "flat")
        nested = db.get_content("entries", "nested")
        for key in ("title", "teaser"):
            assert flat.get_field_value(key) == nested.get_field_value(key)


class TestLocalization:
    def test_side_channel_translations_are_stored(self, runner, db, author):
        runner.import_document({"pages": [
            page("about", "About us", body="<p>EN</p>", nldata='{"title": "Over ons"}'),
        ]})

        stored = db.get_content("pages", "about")
        assert stored.get_field_value("title", "en") == "About us"
        assert stored.get_field_value("title", "nl") == "Over ons"
        assert stored.get_field_value("body", "nl") == "<p>EN</p>"

    def test_nested_translations_are_stored(self, runner, db, author):
        runner.import_document({"content": [{
            "contentType": "pages",
            "slug": ["about"],
            "fields": {"title": {"en": "About", "nl": "Over"}},
        }]})

        stored = db.get_content("pages", "about")
        assert stored.get_field_value("title", "en") == "About"
        assert stored.get_field_value("title", "nl") == "Over"


class TestTaxonomies:
    def test_unknown_flat_option_is_dropped(self, runner, db, author):
        runner.import_document({"entries": [{
            "slug": "one",
            "title": "One",
            "categories": [{"slug": "news"}, {"slug": "gone"}],
            "tags": [{"slug": "winter"}],
        }]})

        stored = db.get_content("entries", "one")
        assert [(t.taxonomy, t.slug) for t in stored.taxonomies] == [("categories", "news"), ("tags", "winter")]

    def test_taxonomies_accumulate_across_imports(self, runner, db, author):
        runner.import_document({"content": [entry("one", taxonomies={"categories": {"news": "News"}})]})
        runner.import_document({"content": [entry("one", taxonomies={"categories": {"events": "Events"}})]})

        stored = db.get_content("entries", "one")
        assert [t.slug for t in stored.get_taxonomies("categories")] == ["news", "events"]


class TestRelations:
    @pytest.fixture
    def pages(self, runner, author):
        runner.import_document({"pages": [page("a", "A"), page("b", "B")]})

    def test_relations_are_created_in_order(self, runner, session, pages):
        runner.import_document({"content": [entry("x", pages=["pages/b", "pages/a"])]})

        assert related_slugs(session, "entries", "x") == [("pages", "b"), ("pages", "a")]

    def test_relations_are_replaced(self, runner, db, session, pages):
        runner.import_document({"content": [entry("x", pages=["pages/a"])]})
        runner.import_document({"content": [entry("x", pages=["pages/b"])]})

        assert related_slugs(session, "entries", "x") == [("pages", "b")]
        assert db.count_rows("relations") == 1

    def test_absent_relation_key_keeps_relations(self, runner, session, pages):
        runner.import_document({"content": [entry("x", pages=["pages/a"])]})
        runner.import_document({"content": [entry("x")]})

        assert related_slugs(session, "entries", "x") == [("pages", "a")]

    def test_empty_relation_list_clears_relations(self, runner, db, pages):
        runner.import_document({"content": [entry("x", pages=["pages/a"])]})
        runner.import_document({"content": [entry("x", pages=[])]})

        assert db.count_rows("relations") == 0

    def test_replacement_removes_incoming_relations(self, session, db, author):
        registry = SchemaRegistry({
            "pages": {
                "singular_slug": "page",
                "fields": {"title": {"type": "text"}, "slug": {"type": "slug"}},
                "relations": {"related": {"multiple": True}},
            },
        })
        runner = DocumentImporter(ImportContext(registry=registry), session)

        runner.import_document({"pages": [page("b", "B"), page("a", "A", related=["pages/b"])]})
        assert db.count_rows("relations") == 1

        runner.import_document({"pages": [page("b", "B", related=[])]})

        assert db.count_rows("relations") == 0
        assert related_slugs(session, "pages", "a") == []

    def test_outgoing_lookup_excludes_incoming(self, runner, session, pages):
        runner.import_document({"content": [entry("x", pages=["pages/a"])]})

        target = session.find_content("pages", "a")
        assert session.find_relations(target) == []
        assert [(r.source.slug, r.target.slug) for r in session.find_relations(target, bidirectional=True)] == [("x", "a")]

    def test_unresolvable_references_are_skipped(self, runner, session, pages):
        runner.import_document({"content": [
            entry("x", pages=["pages/missing", "ghosts/a", "nonsense", 42, "page/a"]),
        ]})

        assert related_slugs(session, "entries", "x") == [("pages", "a")]

    def test_forward_reference_is_skipped(self, runner, session, author):
        runner.import_document({
            "content": [entry("x", pages=["pages/later"])],
            "pages": [page("later", "Later")],
        })

        assert related_slugs(session, "entries", "x") == []


class TestTimestamps:
    def test_depublished_is_set_and_cleared(self, runner, db, author):
        runner.import_document({"pages": [page("about", "About", datedepublish="2021-01-01 00:00:00")]})
        assert db.get_content("pages", "about").depublished_at == datetime(2021, 1, 1)

        runner.import_document({"pages": [page("about", "About")]})
        assert db.get_content("pages", "about").depublished_at is None

    def test_missing_timestamps_default_to_now(self, runner, db, author):
        before = utc_now()
        runner.import_document({"pages": [{"slug": "about", "title": "About"}]})

        stored = db.get_content("pages", "about")
        assert stored.created_at >= before
        assert stored.published_at >= before
        assert stored.modified_at >= before
        assert stored.depublished_at is None

    def test_v4_timestamps_take_precedence(self, runner, db, author):
        record = page("about", "About", createdAt="2020-05-05T00:00:00+00:00")
        runner.import_document({"pages": [record]})

        assert db.get_content("pages", "about").created_at == datetime(2020, 5, 5)


class TestOwner:
    def test_owner_id_is_used(self, runner, db, session, author):
        owner = UserAccount(username="owner")
        session.persist(owner)
        session.flush()

        runner.import_document({"pages": [page("about", "About", ownerid=owner.id)]})
        assert db.get_content("pages", "about").author_id == owner.id

    def test_unknown_owner_falls_back_to_first_user(self, runner, db, author):
        runner.import_document({"pages": [page("about", "About", ownerid=999)]})
        assert db.get_content("pages", "about").author_id == author.id

    def test_no_users_is_fatal(self, runner, db):
        with pytest.raises(MissingAuthorError) as excinfo:
            runner.import_document({"pages": [page("about", "About")]})

        assert excinfo.value.slug == "about"
        assert db.count_rows("contents") == 0

    def test_updates_do_not_need_users(self, context, db, session, author):
        importer = ContentImporter(context, session)
        importer.import_record("pages", view(page("about", "About")))

        db.connection.execute("DELETE FROM users")
        session.clear()

        content, created = importer.import_record("pages", view(page("about", "New title")))
        assert not created
        assert content.get_field_value("title") == "New title"


class TestBlockAbort:
    def test_undefined_block_is_aborted_and_import_continues(self, context, session, db, author):
        reporter = RecordingReporter()
        runner = DocumentImporter(context, session, reporter)

        stats = runner.import_document({
            "pages": [page("about", "About")],
            "ghosts": [{"slug": "boo"}],
            "content": [entry("one")],
        })

        assert stats.aborted_blocks == ["ghosts"]
        assert reporter.errors == ["Requested ContentType ghosts is not defined in contenttypes.yaml."]
        assert db.get_content("pages", "about") is not None
        assert db.get_content("entries", "one") is not None

    def test_undefined_record_type_stops_rest_of_block(self, runner, db, author):
        stats = runner.import_document({"content": [
            entry("before"),
            {"contentType": "ghosts", "slug": ["boo"]},
            entry("after"),
        ]})

        assert stats.aborted_blocks == ["content"]
        assert db.get_content("entries", "before") is not None
        assert db.get_content("entries", "after") is None

    def test_resolve_schema_reports_requested_type(self, context, session):
        importer = ContentImporter(context, session)

        with pytest.raises(UndefinedContentTypeError) as excinfo:
            importer.resolve_schema("content", view({"contentType": "ghosts"}))
        assert excinfo.value.content_type == "ghosts"

    def test_non_list_block_is_aborted(self, runner, author):
        stats = runner.import_document({"pages": {"slug": "about"}})

        assert stats.aborted_blocks == ["pages"]

    def test_meta_block_is_ignored(self, runner, db, author):
        stats = runner.import_document({"__bolt_export_meta": {"version": "3.7"}})

        assert stats.aborted_blocks == []
        assert db.count_rows("contents") == 0


class TestRelease:
    def test_clears_after_first_record_and_every_interval(self, runner, session, author):
        runner.import_document({"pages": [page(f"p{i}", f"Page {i}") for i in range(5)]})

        assert session.clear_count == 2
        assert not session.has_pending_changes

    def test_nothing_is_pending_when_cleared(self, context, session, author):
        class CheckingRunner(DocumentImporter):
            pending_at_clear = []

            def release(self, index):
                self.pending_at_clear.append(self.session.has_pending_changes)
                return super().release(index)

        runner = CheckingRunner(context, session)
        runner.import_document({"pages": [page(f"p{i}", "P") for i in range(4)]})

        assert runner.pending_at_clear == [False, False, False, False]

    @pytest.mark.parametrize("interval,index,expected", [
        (3, 0, True),
        (3, 1, False),
        (3, 3, True),
        (1, 5, True),
        (0, 0, False),
    ])
    def test_release_schedule(self, registry, session, interval, index, expected):
        context = ImportContext(registry=registry, clear_interval=interval)
        assert DocumentImporter(context, session).release(index) is expected

    def test_relations_survive_a_clear(self, registry, session, db, author):
        context = ImportContext(registry=registry, clear_interval=1)
        runner = DocumentImporter(context, session)
        runner.import_document({
            "pages": [page("a", "A")],
            "content": [entry("x", pages=["pages/a"])],
        })

        assert related_slugs(session, "entries", "x") == [("pages", "a")]


def test_mock_document_import(runner, db, session):
    stats = runner.import_document(MockImporter().get_document())

    assert stats.created == {"users": 1, "pages": 2, "entries": 1}
    assert stats.aborted_blocks == []

    admin = db.get_user_by_username("admin")
    about = db.get_content("pages", "about")
    first = db.get_content("entries", "first-entry")

    assert about.author_id == admin.id
    assert about.get_field_value("title", "nl") == "Over ons"
    assert [t.slug for t in first.taxonomies] == ["news", "winter"]
    assert related_slugs(session, "entries", "first-entry") == [("pages", "about"), ("pages", "contact")]
