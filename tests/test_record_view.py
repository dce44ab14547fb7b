from datetime import datetime

import pytest

from conimex.ingest.dates import parse_datetime
from conimex.ingest.record import MappingRecordView, view


def test_get_returns_default_only_for_absent_keys():
    record = MappingRecordView({"title": "Hello", "teaser": None})

    assert record.get("title") == "Hello"
    assert record.get("teaser", "fallback") is None
    assert record.get("missing", "fallback") == "fallback"
    assert record.has("teaser")
    assert not record.has("missing")


def test_fallback_chain_prefers_current_name():
    record = view({"createdAt": "2020-01-01", "datecreated": "2019-01-01"})
    legacy = view({"datecreated": "2019-01-01"})

    assert record.attribute("created") == "2020-01-01"
    assert legacy.attribute("created") == "2019-01-01"
    assert view({}).attribute("created") is None


def test_present_null_stops_the_fallback_chain():
    record = view({"displayName": None, "displayname": "Legacy"})
    assert record.attribute("display_name") is None


def test_first_truthy_skips_empty_values():
    record = view({"depublishedAt": None, "datedepublish": "2021-01-01"})
    assert record.first_truthy(("depublishedAt", "datedepublish")) == "2021-01-01"
    assert view({"depublishedAt": ""}).first_truthy(("depublishedAt", "datedepublish")) is None


@pytest.mark.parametrize("record,expected", [
    ({"slug": "about"}, "about"),
    ({"slug": ["about"]}, "about"),
    ({"slug": []}, None),
    ({"fields": {"slug": ["nested"]}}, "nested"),
    ({"slug": "top", "fields": {"slug": "nested"}}, "top"),
    ({}, None),
])
def test_slug_normalization(record, expected):
    assert view(record).slug() == expected


def test_view_never_mutates_record():
    raw = {"slug": ["about"], "fields": {"title": "x"}}
    record = view(raw)
    record.slug()
    record.mapping("fields")
    list(record.items())

    assert raw == {"slug": ["about"], "fields": {"title": "x"}}


def test_mapping_accessor_ignores_non_mappings():
    assert view({"fields": "oops"}).mapping("fields") == {}
    assert view({}).mapping("taxonomies") == {}


def test_content_type_override():
    assert view({"contentType": "entries"}).content_type("content") == "entries"
    assert view({}).content_type("pages") == "pages"


def test_view_rejects_non_mappings():
    with pytest.raises(TypeError):
        view(["not", "a", "record"])


def test_view_passes_through_existing_views():
    record = view({"slug": "a"})
    assert view(record) is record


@pytest.mark.parametrize("value,expected", [
    ("2019-01-01 10:00:00", datetime(2019, 1, 1, 10, 0, 0)),
    ("2020-03-01T09:00:00+02:00", datetime(2020, 3, 1, 7, 0, 0)),
    (datetime(2020, 1, 1, 12, 0), datetime(2020, 1, 1, 12, 0)),
    (0, datetime(1970, 1, 1, 0, 0, 0)),
    (86400, datetime(1970, 1, 2, 0, 0, 0)),
    ("20190101", datetime(2019, 1, 1, 0, 0, 0)),
    ("20190101120000", datetime(2019, 1, 1, 12, 0, 0)),
])
def test_parse_datetime(value, expected):
    assert parse_datetime(value) == expected


def test_parse_datetime_defaults():
    default = datetime(2000, 1, 1)

    assert parse_datetime(None, default) == default
    assert parse_datetime("", default) == default
    assert parse_datetime("not a date", default) == default
    assert parse_datetime(None) is None
