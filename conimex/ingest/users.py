"""
User import for Conimex.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from ..models import UserAccount
from .context import ImportContext
from .record import RecordView, view

EDITOR_ROLE = "ROLE_EDITOR"
USER_ROLE = "ROLE_USER"


class UserImporter:
    """
    Creates accounts that do not exist yet. Existing accounts, matched by
    username, are never touched.
    """

    def __init__(self, context: ImportContext, session, reporter=None):
        self.context = context
        self.session = session
        self.reporter = reporter

    def import_users(self, records: Iterable[Any], stats=None) -> int:
        """
        Import a ``__users`` block.

        Returns:
            Number of accounts created
        """
        created = 0
        for index, raw in enumerate(records or []):
            if not isinstance(raw, Mapping):
                logging.warning(f"Skipping non-mapping user record #{index}")
                if stats is not None:
                    stats.record_skipped_user()
                continue

            user = self.import_user(view(raw))
            if user is None:
                if stats is not None:
                    stats.record_skipped_user()
                continue
            created += 1
            if stats is not None:
                stats.record_created("users")
        return created

    def import_user(self, record: RecordView) -> Optional[UserAccount]:
        """
        Returns:
            The new account, or None if the username exists or is missing
        """
        username = record.get("username")
        if not username:
            logging.warning("Skipping a user record without a username")
            return None
        # YAML decodes numeric usernames to int
        username = str(username)

        if self.session.find_user_by_username(username) is not None:
            logging.info(f"User '{username}' already exists, leaving it untouched")
            return None

        if self.reporter:
            self.reporter.comment(f"Add user '{username}'.")

        roles = list(record.get("roles") or [])
        # v3 accounts have no base role; they become editors
        if USER_ROLE not in roles and EDITOR_ROLE not in roles:
            roles.append(EDITOR_ROLE)

        status = record.get("status")
        if status is None:
            status = "enabled" if record.get("enabled") else "disabled"

        user = UserAccount(
            username=username,
            display_name=record.attribute("display_name"),
            email=record.get("email"),
            password=record.get("password"),
            roles=roles,
            locale=record.get("locale") or self.context.default_user_locale,
            backend_theme=record.get("backendTheme") or self.context.default_backend_theme,
            status=status
        )

        self.session.persist(user)
        self.session.flush()
        return user
