import pytest

from conimex.ingest import DocumentImporter, ImportContext, UserImporter, view
from conimex.models import UserAccount
from conimex.reporting import ImportStats, Reporter


class CommentRecorder(Reporter):
    def __init__(self):
        self.comments = []

    def comment(self, message):
        self.comments.append(message)


@pytest.fixture
def importer(context, session):
    return UserImporter(context, session)


def test_v3_user(importer, db):
    user = importer.import_user(view({
        "username": "admin",
        "displayname": "Admin",
        "email": "admin@example.org",
        "password": "$2y$13$hash",
        "roles": ["ROLE_ADMIN"],
        "enabled": True,
    }))

    stored = db.get_user_by_username("admin")
    assert stored.id == user.id
    assert stored.display_name == "Admin"
    assert stored.password == "$2y$13$hash"
    assert stored.roles == ["ROLE_ADMIN", "ROLE_EDITOR"]
    assert stored.status == "enabled"
    assert stored.locale == "en"
    assert stored.backend_theme == "default"


def test_v4_user(importer, db):
    importer.import_user(view({
        "username": "jane",
        "displayName": "Jane",
        "roles": ["ROLE_USER"],
        "status": "disabled",
        "locale": "nl",
        "backendTheme": "dark",
    }))

    stored = db.get_user_by_username("jane")
    assert stored.display_name == "Jane"
    assert stored.roles == ["ROLE_USER"]
    assert stored.status == "disabled"
    assert stored.locale == "nl"
    assert stored.backend_theme == "dark"


@pytest.mark.parametrize("record,status", [
    ({"username": "a", "enabled": False}, "disabled"),
    ({"username": "a"}, "disabled"),
    ({"username": "a", "enabled": 1}, "enabled"),
    ({"username": "a", "enabled": True, "status": "blocked"}, "blocked"),
])
def test_status(importer, record, status):
    assert importer.import_user(view(record)).status == status


def test_editor_role_is_not_duplicated(importer):
    user = importer.import_user(view({"username": "a", "roles": ["ROLE_EDITOR"]}))
    assert user.roles == ["ROLE_EDITOR"]


def test_empty_locale_uses_default(registry, session):
    context = ImportContext(registry=registry, default_user_locale="nl", default_backend_theme="light")
    user = UserImporter(context, session).import_user(view({"username": "a", "locale": "", "backendTheme": None}))

    assert user.locale == "nl"
    assert user.backend_theme == "light"


def test_existing_user_is_untouched(importer, session, db):
    session.persist(UserAccount(username="admin", display_name="Original", roles=["ROLE_ADMIN"]))
    session.flush()

    assert importer.import_user(view({"username": "admin", "displayname": "Changed"})) is None

    stored = db.get_user_by_username("admin")
    assert stored.display_name == "Original"
    assert db.count_rows("users") == 1


def test_import_users_counts(context, session, db):
    reporter = CommentRecorder()
    stats = ImportStats()
    importer = UserImporter(context, session, reporter)

    created = importer.import_users([
        {"username": "a"},
        {"username": "b"},
        {"username": "a"},
        {"displayname": "No username"},
    ], stats)

    assert created == 2
    assert stats.created == {"users": 2}
    assert stats.skipped_users == 2
    assert reporter.comments == ["Add user 'a'.", "Add user 'b'."]


def test_users_block_can_be_skipped(registry, session, db):
    context = ImportContext(registry=registry, skip_users=True)
    stats = DocumentImporter(context, session).import_document({"__users": [{"username": "a"}]})

    assert stats.created == {}
    assert db.count_rows("users") == 0


def test_numeric_username(context, session, db):
    stats = DocumentImporter(context, session).import_document({"__users": [{"username": 12345, "roles": []}]})

    assert stats.created == {"users": 1}
    assert db.get_user_by_username("12345").roles == ["ROLE_EDITOR"]

    # A second run matches the stored account
    stats = DocumentImporter(context, session).import_document({"__users": [{"username": 12345}]})
    assert stats.skipped_users == 1
    assert db.count_rows("users") == 1


def test_non_mapping_user_records_are_skipped(context, session, db):
    stats = DocumentImporter(context, session).import_document({
        "__users": ["admin", None, {"username": "jane"}],
    })

    assert stats.created == {"users": 1}
    assert stats.skipped_users == 2
    assert db.get_user_by_username("jane") is not None
