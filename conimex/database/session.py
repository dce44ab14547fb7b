"""
Unit of work for Conimex.

The session keeps an identity map of loaded content and stages new or
changed entities until :meth:`Session.flush` writes them in one
transaction. :meth:`Session.clear` releases everything it tracks.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from ..models import CanonicalContent, Relation, UserAccount
from .manager import DatabaseManager

Entity = Union[CanonicalContent, Relation, UserAccount]


class Session:
    """
    Tracks entities for the record currently being imported.
    """

    def __init__(self, database: DatabaseManager):
        """
        Args:
            database: A connected DatabaseManager
        """
        self.database = database
        self._contents: Dict[Tuple[str, str], CanonicalContent] = {}
        self._contents_by_id: Dict[int, CanonicalContent] = {}
        self._pending: List[Entity] = []
        self._removed: List[Relation] = []
        self.flush_count = 0
        self.clear_count = 0

    def _track(self, content: CanonicalContent) -> CanonicalContent:
        self._contents[(content.content_type, content.slug)] = content
        if content.id is not None:
            self._contents_by_id[content.id] = content
        return content

    def find_content(self, content_type: str, slug: Any) -> Optional[CanonicalContent]:
        """
        Find a content item by content type key and slug.

        Repeated lookups within one unit of work return the same instance.
        """
        if not isinstance(slug, str) or not slug:
            return None

        tracked = self._contents.get((content_type, slug))
        if tracked is not None:
            return tracked

        content = self.database.get_content(content_type, slug)
        return self._track(content) if content else None

    def find_content_by_id(self, content_id: int) -> Optional[CanonicalContent]:
        tracked = self._contents_by_id.get(content_id)
        if tracked is not None:
            return tracked

        content = self.database.get_content_by_id(content_id)
        if content is None:
            return None
        # A tracked instance for the same natural key wins
        tracked = self._contents.get((content.content_type, content.slug))
        return tracked if tracked is not None else self._track(content)

    def find_relations(self, content: CanonicalContent, bidirectional: bool = False) -> List[Relation]:
        """
        Return the stored relations of ``content``: outgoing ones, plus those
        pointing at it when ``bidirectional`` is set.

        Relations staged in this unit of work but not flushed are not included.
        """
        if content.id is None:
            return []

        relations = []
        for row in self.database.get_relation_rows(content.id, bidirectional):
            source = self._endpoint(content, row["from_content_id"])
            target = self._endpoint(content, row["to_content_id"])
            if source is None or target is None:
                logging.warning(f"Relation {row['id']} points at missing content")
                continue
            relations.append(Relation(
                id=row["id"],
                key=row["relation_key"],
                source=source,
                target=target,
                position=row["position"]
            ))
        return relations

    def _endpoint(self, content: CanonicalContent, content_id: int) -> Optional[CanonicalContent]:
        if content_id == content.id:
            return content
        return self.find_content_by_id(content_id)

    def find_user(self, user_id: Any) -> Optional[UserAccount]:
        return self.database.get_user(user_id)

    def find_user_by_username(self, username: str) -> Optional[UserAccount]:
        return self.database.get_user_by_username(username)

    def find_any_user(self) -> Optional[UserAccount]:
        return self.database.get_first_user()

    def persist(self, entity: Entity) -> None:
        """Stage ``entity`` to be written on the next flush."""
        if any(entity is pending for pending in self._pending):
            return
        if isinstance(entity, CanonicalContent):
            self._track(entity)
        self._pending.append(entity)

    def remove(self, relation: Relation) -> None:
        """Stage a stored relation for deletion on the next flush."""
        if relation.id is None:
            self._pending = [p for p in self._pending if p is not relation]
            return
        self._removed.append(relation)

    def flush(self) -> None:
        """
        Write all staged changes in one transaction.

        Removals go first, then users, content and relations, so that
        relations can reference content created in the same flush.
        """
        users = [e for e in self._pending if isinstance(e, UserAccount)]
        contents = [e for e in self._pending if isinstance(e, CanonicalContent)]
        relations = [e for e in self._pending if isinstance(e, Relation)]

        with self.database.transaction():
            for relation in self._removed:
                self.database.delete_relation(relation.id)

            for user in users:
                # Existing accounts are never written back
                if user.id is None:
                    user.id = self.database.insert_user(user)

            for content in contents:
                if content.id is None:
                    content.id = self.database.insert_content(content)
                else:
                    self.database.update_content(content)
                self.database.replace_content_fields(content)
                self.database.replace_content_taxonomies(content)
                self._contents_by_id[content.id] = content

            for relation in relations:
                if relation.id is not None:
                    continue
                if relation.source.id is None or relation.target.id is None:
                    logging.warning(
                        f"Skipping relation '{relation.key}' from unsaved content "
                        f"{relation.source.content_type}/{relation.source.slug}"
                    )
                    continue
                relation.id = self.database.insert_relation(
                    relation.source.id, relation.target.id, relation.key, relation.position
                )

        self._pending = []
        self._removed = []
        self.flush_count += 1

    def clear(self) -> None:
        """
        Release every tracked entity. Entities held by callers become detached.
        """
        self._contents.clear()
        self._contents_by_id.clear()
        self._pending = []
        self._removed = []
        self.clear_count += 1

    @property
    def tracked_count(self) -> int:
        return len(self._contents)

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending or self._removed)
