"""Activity log storage.

The default audit sink. Persists events to the _activities system table and
serves the recent-activity feed.
"""

import json
import uuid
from typing import Any

from sqlalchemy import create_engine, text

from corebase.audit.types import AuditEvent


class ActivityStore:
    """Activity log via SQLAlchemy Core."""

    def __init__(self, database_url: str):
        self._engine = create_engine(database_url)
        self._ensure_table()

    def _ensure_table(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS _activities (
                    id              TEXT PRIMARY KEY,
                    user_id         TEXT,
                    action          TEXT NOT NULL,
                    entity_type     TEXT NOT NULL,
                    entity_id       TEXT NOT NULL,
                    details         TEXT,
                    created_at      TEXT NOT NULL
                )
            """))
            conn.commit()

    def record(self, event: AuditEvent) -> None:
        """Audit sink entry point."""
        with self._engine.connect() as conn:
            conn.execute(
                text("""
                    INSERT INTO _activities
                        (id, user_id, action, entity_type, entity_id, details, created_at)
                    VALUES
                        (:id, :user_id, :action, :entity_type, :entity_id, :details, :created_at)
                """),
                {
                    "id": uuid.uuid4().hex,
                    "user_id": event.user_id,
                    "action": event.action,
                    "entity_type": event.entity_type,
                    "entity_id": event.entity_id,
                    "details": json.dumps(event.details, default=str),
                    "created_at": event.created_at,
                },
            )
            conn.commit()

    def list_recent(self, limit: int = 20) -> list[dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("""
                    SELECT * FROM _activities
                    ORDER BY created_at DESC, rowid DESC
                    LIMIT :limit
                """),
                {"limit": limit},
            ).mappings().fetchall()

        return [
            {
                "id": row["id"],
                "userId": row["user_id"],
                "action": row["action"],
                "entityType": row["entity_type"],
                "entityId": row["entity_id"],
                "details": json.loads(row["details"]) if row["details"] else {},
                "createdAt": row["created_at"],
            }
            for row in rows
        ]

    def dispose(self) -> None:
        self._engine.dispose()
