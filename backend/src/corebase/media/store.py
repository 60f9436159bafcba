"""Media metadata records.

Upload transport lives outside Corebase; this store only keeps the metadata
(name, url, type, size, uploader) so media references in entries can be
resolved.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import create_engine, text


@dataclass
class MediaItem:
    id: str
    name: str
    url: str
    type: str
    size: int
    uploaded_by: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "type": self.type,
            "size": self.size,
            "uploadedBy": self.uploaded_by,
            "createdAt": self.created_at,
        }


class MediaStore:
    """Media metadata store via SQLAlchemy Core."""

    def __init__(self, database_url: str):
        self._engine = create_engine(database_url)
        self._ensure_table()

    def _ensure_table(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS _media (
                    id              TEXT PRIMARY KEY,
                    name            TEXT NOT NULL,
                    url             TEXT NOT NULL,
                    type            TEXT NOT NULL,
                    size            INTEGER NOT NULL,
                    uploaded_by     TEXT,
                    created_at      TEXT
                )
            """))
            conn.commit()

    def _row_to_item(self, row: Any) -> MediaItem:
        return MediaItem(
            id=row["id"],
            name=row["name"],
            url=row["url"],
            type=row["type"],
            size=row["size"],
            uploaded_by=row["uploaded_by"],
            created_at=row["created_at"],
        )

    def create(
        self,
        name: str,
        url: str,
        type: str,
        size: int,
        uploaded_by: str | None = None,
    ) -> MediaItem:
        media_id = uuid.uuid4().hex
        with self._engine.connect() as conn:
            conn.execute(
                text("""
                    INSERT INTO _media (id, name, url, type, size, uploaded_by, created_at)
                    VALUES (:id, :name, :url, :type, :size, :uploaded_by, :created_at)
                """),
                {
                    "id": media_id,
                    "name": name,
                    "url": url,
                    "type": type,
                    "size": size,
                    "uploaded_by": uploaded_by,
                    "created_at": datetime.now(UTC).isoformat(),
                },
            )
            conn.commit()
        return self.get(media_id)  # type: ignore[return-value]

    def get(self, media_id: str) -> MediaItem | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT * FROM _media WHERE id = :id"),
                {"id": media_id},
            ).mappings().fetchone()
        return self._row_to_item(row) if row else None

    def existing_ids(self, ids: list[str]) -> set[str]:
        """Return the subset of ids that refer to stored media."""
        if not ids:
            return set()
        params = {f"id{i}": media_id for i, media_id in enumerate(ids)}
        placeholders = ", ".join(f":{name}" for name in params)
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT id FROM _media WHERE id IN ({placeholders})"),
                params,
            ).mappings().fetchall()
        return {row["id"] for row in rows}

    def delete(self, media_id: str) -> bool:
        with self._engine.connect() as conn:
            result = conn.execute(
                text("DELETE FROM _media WHERE id = :id"),
                {"id": media_id},
            )
            conn.commit()
            return result.rowcount > 0

    def list(self, type: str | None = None, limit: int = 50, offset: int = 0) -> list[MediaItem]:
        where = " WHERE type = :type" if type else ""
        sql = f"SELECT * FROM _media{where} ORDER BY created_at DESC LIMIT :limit OFFSET :offset"
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(sql),
                {"type": type, "limit": limit, "offset": offset},
            ).mappings().fetchall()
        return [self._row_to_item(row) for row in rows]

    def dispose(self) -> None:
        self._engine.dispose()
