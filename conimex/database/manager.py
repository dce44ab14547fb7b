"""
Database manager for Conimex.

This module handles all row-level database operations using DuckDB. The
unit of work that tracks entities across a record lives in
:mod:`conimex.database.session`.
"""

import duckdb
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

from ..models import CanonicalContent, TaxonomyAssignment, UserAccount


class DatabaseManager:
    """
    Manages the DuckDB database holding users, content, taxonomies and relations.
    """

    def __init__(self, db_path: str = "conimex.db"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the DuckDB database file, or ":memory:"
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database."""
        self.connection = duckdb.connect(self.db_path)

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def _require_connection(self):
        if not self.connection:
            raise RuntimeError("Database connection not established")
        return self.connection

    def initialize_database(self):
        """
        Create all necessary tables if they don't exist.
        """
        connection = self._require_connection()

        connection.execute("CREATE SEQUENCE IF NOT EXISTS user_id_seq START 1;")
        connection.execute("CREATE SEQUENCE IF NOT EXISTS content_id_seq START 1;")
        connection.execute("CREATE SEQUENCE IF NOT EXISTS relation_id_seq START 1;")

        connection.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id BIGINT PRIMARY KEY DEFAULT nextval('user_id_seq'),
                username VARCHAR NOT NULL UNIQUE,
                display_name VARCHAR,
                email VARCHAR,
                password VARCHAR,
                roles VARCHAR NOT NULL,
                locale VARCHAR NOT NULL,
                backend_theme VARCHAR NOT NULL,
                status VARCHAR NOT NULL
            )
        """)

        connection.execute("""
            CREATE TABLE IF NOT EXISTS contents (
                id BIGINT PRIMARY KEY DEFAULT nextval('content_id_seq'),
                content_type VARCHAR NOT NULL,
                slug VARCHAR NOT NULL,
                status VARCHAR NOT NULL,
                author_id BIGINT,
                created_at TIMESTAMP,
                published_at TIMESTAMP,
                modified_at TIMESTAMP,
                depublished_at TIMESTAMP,
                UNIQUE (content_type, slug)
            )
        """)

        # Child tables are rewritten per flush, so they carry no unique keys:
        # DuckDB rejects deleting and re-inserting the same key in one transaction.
        connection.execute("""
            CREATE TABLE IF NOT EXISTS content_fields (
                content_id BIGINT NOT NULL,
                name VARCHAR NOT NULL,
                locale VARCHAR NOT NULL,
                value VARCHAR,
                sortorder INTEGER NOT NULL
            )
        """)

        connection.execute("""
            CREATE TABLE IF NOT EXISTS content_taxonomies (
                content_id BIGINT NOT NULL,
                taxonomy VARCHAR NOT NULL,
                slug VARCHAR NOT NULL,
                name VARCHAR NOT NULL,
                sortorder INTEGER NOT NULL
            )
        """)

        connection.execute("""
            CREATE TABLE IF NOT EXISTS relations (
                id BIGINT PRIMARY KEY DEFAULT nextval('relation_id_seq'),
                from_content_id BIGINT NOT NULL,
                to_content_id BIGINT NOT NULL,
                relation_key VARCHAR NOT NULL,
                sortorder INTEGER NOT NULL
            )
        """)

    @contextmanager
    def transaction(self):
        """Run the enclosed statements in one transaction, rolling back on error."""
        connection = self._require_connection()
        connection.begin()
        try:
            yield connection
        except Exception:
            connection.rollback()
            raise
        else:
            connection.commit()

    # Users

    _USER_COLUMNS = "id, username, display_name, email, password, roles, locale, backend_theme, status"

    def _row_to_user(self, row) -> UserAccount:
        return UserAccount(
            id=row[0],
            username=row[1],
            display_name=row[2],
            email=row[3],
            password=row[4],
            roles=json.loads(row[5]),
            locale=row[6],
            backend_theme=row[7],
            status=row[8]
        )

    def get_user(self, user_id: Any) -> Optional[UserAccount]:
        """
        Retrieve a user by identifier.

        Args:
            user_id: The identifier; non-integer values never match

        Returns:
            The user if found, None otherwise
        """
        connection = self._require_connection()
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None

        result = connection.execute(
            f"SELECT {self._USER_COLUMNS} FROM users WHERE id = ?", [user_id]
        ).fetchone()
        return self._row_to_user(result) if result else None

    def get_user_by_username(self, username: str) -> Optional[UserAccount]:
        """Retrieve a user by username."""
        connection = self._require_connection()
        result = connection.execute(
            f"SELECT {self._USER_COLUMNS} FROM users WHERE username = ?", [username]
        ).fetchone()
        return self._row_to_user(result) if result else None

    def get_first_user(self) -> Optional[UserAccount]:
        """Retrieve the user with the lowest identifier, if any user exists."""
        connection = self._require_connection()
        result = connection.execute(
            f"SELECT {self._USER_COLUMNS} FROM users ORDER BY id LIMIT 1"
        ).fetchone()
        return self._row_to_user(result) if result else None

    def list_users(self) -> List[UserAccount]:
        connection = self._require_connection()
        results = connection.execute(
            f"SELECT {self._USER_COLUMNS} FROM users ORDER BY id"
        ).fetchall()
        return [self._row_to_user(row) for row in results]

    def insert_user(self, user: UserAccount) -> int:
        """
        Insert a new user.

        Returns:
            The identifier assigned to the user
        """
        connection = self._require_connection()
        result = connection.execute("""
            INSERT INTO users (username, display_name, email, password, roles, locale, backend_theme, status)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
        """, [
            user.username,
            user.display_name,
            user.email,
            user.password,
            json.dumps(user.roles),
            user.locale,
            user.backend_theme,
            user.status
        ]).fetchone()
        return result[0]

    # Content

    _CONTENT_COLUMNS = (
        "id, content_type, slug, status, author_id, "
        "created_at, published_at, modified_at, depublished_at"
    )

    def _row_to_content(self, row) -> CanonicalContent:
        content = CanonicalContent(
            id=row[0],
            content_type=row[1],
            slug=row[2],
            status=row[3],
            author_id=row[4],
            created_at=row[5],
            published_at=row[6],
            modified_at=row[7],
            depublished_at=row[8]
        )

        for name, locale, value in self.get_content_fields(content.id):
            content.set_field_value(name, value, locale or None)

        content.taxonomies = self.get_content_taxonomies(content.id)
        return content

    def get_content(self, content_type: str, slug: str) -> Optional[CanonicalContent]:
        """
        Retrieve a content item, with its fields and taxonomies, by its natural key.
        """
        connection = self._require_connection()
        result = connection.execute(
            f"SELECT {self._CONTENT_COLUMNS} FROM contents WHERE content_type = ? AND slug = ?",
            [content_type, slug]
        ).fetchone()
        return self._row_to_content(result) if result else None

    def get_content_by_id(self, content_id: int) -> Optional[CanonicalContent]:
        connection = self._require_connection()
        result = connection.execute(
            f"SELECT {self._CONTENT_COLUMNS} FROM contents WHERE id = ?", [content_id]
        ).fetchone()
        return self._row_to_content(result) if result else None

    def list_contents(self, content_type: Optional[str] = None) -> List[CanonicalContent]:
        """
        List all content items, optionally filtered by content type.
        """
        connection = self._require_connection()

        if content_type:
            results = connection.execute(
                f"SELECT {self._CONTENT_COLUMNS} FROM contents WHERE content_type = ? ORDER BY id",
                [content_type]
            ).fetchall()
        else:
            results = connection.execute(
                f"SELECT {self._CONTENT_COLUMNS} FROM contents ORDER BY id"
            ).fetchall()

        return [self._row_to_content(row) for row in results]

    def get_content_fields(self, content_id: int) -> List[Tuple[str, str, Any]]:
        """
        Returns:
            (name, locale, value) tuples in field order; the base value has locale ''
        """
        connection = self._require_connection()
        results = connection.execute("""
            SELECT name, locale, value FROM content_fields
            WHERE content_id = ?
            ORDER BY sortorder, locale
        """, [content_id]).fetchall()
        return [(row[0], row[1], json.loads(row[2]) if row[2] is not None else None) for row in results]

    def get_content_taxonomies(self, content_id: int) -> List[TaxonomyAssignment]:
        connection = self._require_connection()
        results = connection.execute("""
            SELECT taxonomy, slug, name FROM content_taxonomies
            WHERE content_id = ?
            ORDER BY sortorder
        """, [content_id]).fetchall()
        return [TaxonomyAssignment(taxonomy=row[0], slug=row[1], name=row[2]) for row in results]

    def insert_content(self, content: CanonicalContent) -> int:
        """
        Insert the content row (not its fields or taxonomies).

        Returns:
            The identifier assigned to the content
        """
        connection = self._require_connection()
        result = connection.execute("""
            INSERT INTO contents (content_type, slug, status, author_id,
                                  created_at, published_at, modified_at, depublished_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
        """, [
            content.content_type,
            content.slug,
            content.status,
            content.author_id,
            content.created_at,
            content.published_at,
            content.modified_at,
            content.depublished_at
        ]).fetchone()
        return result[0]

    def update_content(self, content: CanonicalContent) -> None:
        connection = self._require_connection()
        connection.execute("""
            UPDATE contents
            SET status = ?, author_id = ?, created_at = ?, published_at = ?,
                modified_at = ?, depublished_at = ?
            WHERE id = ?
        """, [
            content.status,
            content.author_id,
            content.created_at,
            content.published_at,
            content.modified_at,
            content.depublished_at,
            content.id
        ])

    def replace_content_fields(self, content: CanonicalContent) -> None:
        """Rewrite every stored field value of ``content``."""
        connection = self._require_connection()
        connection.execute("DELETE FROM content_fields WHERE content_id = ?", [content.id])

        rows = []
        for sortorder, (name, field_value) in enumerate(content.fields.items()):
            rows.append([content.id, name, '', _encode_value(field_value.value), sortorder])
            for locale, value in field_value.translations.items():
                rows.append([content.id, name, locale, _encode_value(value), sortorder])

        if rows:
            connection.executemany("""
                INSERT INTO content_fields (content_id, name, locale, value, sortorder)
                VALUES (?, ?, ?, ?, ?)
            """, rows)

    def replace_content_taxonomies(self, content: CanonicalContent) -> None:
        """Rewrite every stored taxonomy assignment of ``content``."""
        connection = self._require_connection()
        connection.execute("DELETE FROM content_taxonomies WHERE content_id = ?", [content.id])

        rows = [
            [content.id, taxonomy.taxonomy, taxonomy.slug, taxonomy.name, sortorder]
            for sortorder, taxonomy in enumerate(content.taxonomies)
        ]
        if rows:
            connection.executemany("""
                INSERT INTO content_taxonomies (content_id, taxonomy, slug, name, sortorder)
                VALUES (?, ?, ?, ?, ?)
            """, rows)

    # Relations

    def get_relation_rows(self, content_id: int, bidirectional: bool = False) -> List[Dict[str, Any]]:
        """
        Retrieve the relations of a content item, in position order.

        Args:
            content_id: The content item
            bidirectional: Also include relations that point at the item
        """
        connection = self._require_connection()
        if bidirectional:
            condition = "from_content_id = ? OR to_content_id = ?"
            params = [content_id, content_id]
        else:
            condition = "from_content_id = ?"
            params = [content_id]

        results = connection.execute(f"""
            SELECT id, from_content_id, to_content_id, relation_key, sortorder
            FROM relations
            WHERE {condition}
            ORDER BY sortorder, id
        """, params).fetchall()

        return [
            {
                "id": row[0],
                "from_content_id": row[1],
                "to_content_id": row[2],
                "relation_key": row[3],
                "position": row[4]
            }
            for row in results
        ]

    def insert_relation(self, from_content_id: int, to_content_id: int, relation_key: str, position: int) -> int:
        connection = self._require_connection()
        result = connection.execute("""
            INSERT INTO relations (from_content_id, to_content_id, relation_key, sortorder)
            VALUES (?, ?, ?, ?)
            RETURNING id
        """, [from_content_id, to_content_id, relation_key, position]).fetchone()
        return result[0]

    def delete_relation(self, relation_id: int) -> None:
        connection = self._require_connection()
        connection.execute("DELETE FROM relations WHERE id = ?", [relation_id])

    def count_rows(self, table: str) -> int:
        """Count the rows of one of the Conimex tables."""
        if table not in ("users", "contents", "content_fields", "content_taxonomies", "relations"):
            raise ValueError(f"Unknown table: {table}")
        connection = self._require_connection()
        return connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _encode_value(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError) as e:
        logging.warning(f"Storing unserializable field value as text: {e}")
        return json.dumps(str(value), ensure_ascii=False)
