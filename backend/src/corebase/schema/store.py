"""Persistence for content type definitions.

Uses a system table (_content_types). The field list is stored as JSON text.
The store accepts a SQLAlchemy database URL string and creates its own engine.
"""

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import create_engine, text

from corebase.schema.types import ContentType


class ContentTypeStore:
    """Manages stored content type definitions via SQLAlchemy Core."""

    def __init__(self, database_url: str):
        """Initialize the store.

        Args:
            database_url: SQLAlchemy-compatible database URL,
                          e.g. "sqlite:///data/corebase.db"
        """
        self._engine = create_engine(database_url)
        self._ensure_table()

    def _ensure_table(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS _content_types (
                    api_id          TEXT PRIMARY KEY,
                    display_name    TEXT NOT NULL,
                    description     TEXT,
                    fields          TEXT NOT NULL,
                    created_at      TEXT,
                    updated_at      TEXT
                )
            """))
            conn.commit()

    def _row_to_content_type(self, row: Any) -> ContentType:
        return ContentType.from_dict({
            "apiId": row["api_id"],
            "displayName": row["display_name"],
            "description": row["description"],
            "fields": json.loads(row["fields"]),
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        })

    def create(self, content_type: ContentType) -> ContentType:
        """Insert a definition. Sets both timestamps."""
        now = datetime.now(UTC).isoformat()
        with self._engine.connect() as conn:
            conn.execute(
                text("""
                    INSERT INTO _content_types
                        (api_id, display_name, description, fields, created_at, updated_at)
                    VALUES
                        (:api_id, :display_name, :description, :fields, :created_at, :updated_at)
                """),
                {
                    "api_id": content_type.api_id,
                    "display_name": content_type.display_name,
                    "description": content_type.description,
                    "fields": json.dumps([f.to_dict() for f in content_type.fields]),
                    "created_at": now,
                    "updated_at": now,
                },
            )
            conn.commit()

        return self.get(content_type.api_id)  # type: ignore[return-value]

    def get(self, api_id: str) -> ContentType | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT * FROM _content_types WHERE api_id = :api_id"),
                {"api_id": api_id},
            ).mappings().fetchone()

        if not row:
            return None
        return self._row_to_content_type(row)

    def replace(self, api_id: str, content_type: ContentType) -> ContentType | None:
        """Replace the definition stored under api_id (the apiId itself may change)."""
        now = datetime.now(UTC).isoformat()
        with self._engine.connect() as conn:
            result = conn.execute(
                text("""
                    UPDATE _content_types
                    SET api_id = :new_api_id, display_name = :display_name,
                        description = :description, fields = :fields,
                        updated_at = :updated_at
                    WHERE api_id = :api_id
                """),
                {
                    "new_api_id": content_type.api_id,
                    "display_name": content_type.display_name,
                    "description": content_type.description,
                    "fields": json.dumps([f.to_dict() for f in content_type.fields]),
                    "updated_at": now,
                    "api_id": api_id,
                },
            )
            conn.commit()
            if result.rowcount == 0:
                return None

        return self.get(content_type.api_id)

    def delete(self, api_id: str) -> bool:
        with self._engine.connect() as conn:
            result = conn.execute(
                text("DELETE FROM _content_types WHERE api_id = :api_id"),
                {"api_id": api_id},
            )
            conn.commit()
            return result.rowcount > 0

    def list(self) -> list[ContentType]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT * FROM _content_types ORDER BY created_at, api_id")
            ).mappings().fetchall()

        return [self._row_to_content_type(row) for row in rows]

    def dispose(self) -> None:
        self._engine.dispose()
