"""Persistence for system settings.

Settings are JSON values keyed by name in the _settings system table. The
content workflow reads the ``permissions`` setting's ``contentApproval`` flag.
"""

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import create_engine, text

from corebase.errors import ValidationFailed

GENERAL_KEY = "general"
PERMISSIONS_KEY = "permissions"
KNOWN_KEYS = (GENERAL_KEY, PERMISSIONS_KEY)


class SettingsStore:
    """Key/value settings store. Dialect-neutral via SQLAlchemy Core."""

    def __init__(self, database_url: str):
        self._engine = create_engine(database_url)
        self._ensure_table()

    def _ensure_table(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS _settings (
                    key             TEXT PRIMARY KEY,
                    value           TEXT NOT NULL,
                    updated_at      TEXT
                )
            """))
            conn.commit()

    def get(self, key: str, default: Any = None) -> Any:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT value FROM _settings WHERE key = :key"),
                {"key": key},
            ).mappings().fetchone()

        if not row:
            return default
        return json.loads(row["value"])

    def set(self, key: str, value: Any) -> Any:
        """Insert or replace a setting value."""
        now = datetime.now(UTC).isoformat()
        with self._engine.connect() as conn:
            conn.execute(
                text("""
                    INSERT INTO _settings (key, value, updated_at)
                    VALUES (:key, :value, :updated_at)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value, updated_at = excluded.updated_at
                """),
                {"key": key, "value": json.dumps(value), "updated_at": now},
            )
            conn.commit()
        return value

    def update(self, values: dict[str, Any]) -> dict[str, Any]:
        """Replace several settings at once. Returns every stored setting.

        Raises:
            ValidationFailed: Unknown key, non-object value, or a non-boolean
                contentApproval flag
        """
        for key, value in values.items():
            if key not in KNOWN_KEYS:
                raise ValidationFailed(f"Unknown setting '{key}'", field=key)
            if not isinstance(value, dict):
                raise ValidationFailed(f"Setting '{key}' must be an object", field=key)
        approval = values.get(PERMISSIONS_KEY, {}).get("contentApproval", False)
        if not isinstance(approval, bool):
            raise ValidationFailed(
                "contentApproval must be a boolean", field="contentApproval"
            )

        for key, value in values.items():
            self.set(key, value)
        return self.all()

    def all(self) -> dict[str, Any]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT key, value FROM _settings ORDER BY key")
            ).mappings().fetchall()
        return {row["key"]: json.loads(row["value"]) for row in rows}

    def content_approval(self) -> bool:
        """Whether standard authors need approval to publish."""
        permissions = self.get(PERMISSIONS_KEY) or {}
        return bool(permissions.get("contentApproval", False))

    def set_content_approval(self, enabled: bool) -> None:
        permissions = dict(self.get(PERMISSIONS_KEY) or {})
        permissions["contentApproval"] = enabled
        self.set(PERMISSIONS_KEY, permissions)

    def dispose(self) -> None:
        self._engine.dispose()
