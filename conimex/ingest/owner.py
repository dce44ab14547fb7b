"""
Author resolution for newly created content.
"""

import logging
from typing import Optional

from ..models import UserAccount
from .record import RecordView


class OwnerResolver:
    """
    Picks the author for content that does not exist yet.

    v3 records carry an ``ownerid``; ids rarely survive a migration, so any
    existing user is an acceptable fallback.
    """

    def __init__(self, session):
        self.session = session

    def resolve(self, record: RecordView) -> Optional[UserAccount]:
        """
        Returns:
            The owner named by ``ownerid``, else the first user, else None
        """
        user = None

        if record.has("ownerid"):
            user = self.session.find_user(record.get("ownerid"))
            if user is None:
                logging.debug(f"Owner id {record.get('ownerid')!r} not found, using first user")

        if user is None:
            user = self.session.find_any_user()

        return user
