"""SQLite persistence adapter.

Each content type gets its own table, ``content_<apiId>``, with the system
columns followed by one column per declared field. Identifiers are always
double-quoted so field names such as ``order`` or ``group`` are safe.
"""

import sqlite3
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from corebase.models.compiler import CompiledModel

_SYSTEM_COLUMNS = (
    '"id" TEXT PRIMARY KEY',
    "\"state\" TEXT NOT NULL DEFAULT 'draft'",
    '"createdBy" TEXT',
    '"createdAt" TEXT',
    '"updatedAt" TEXT',
)


def _col(name: str) -> str:
    """Return a double-quoted column identifier."""
    return f'"{name}"'


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _casefold(value: Any) -> Any:
    """Unicode case folding for search; SQLite's LOWER only folds ASCII."""
    return value.casefold() if isinstance(value, str) else value


class SQLiteAdapter:
    """SQLite persistence adapter for content entries."""

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Establish database connection."""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.create_function("casefold", 1, _casefold, deterministic=True)

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------

    def initialize_model(self, model: CompiledModel) -> None:
        """Create the table for a model, adding columns for new fields.

        Columns of fields that were removed or changed storage shape must be
        dropped first with drop_fields; no data is migrated.
        """
        conn = self._require_conn()
        table_name = self._table_name(model.api_id)

        columns = list(_SYSTEM_COLUMNS)
        for field in model.fields:
            columns.append(f"{_col(field.name)} {field.storage_type}")

        conn.execute(f"CREATE TABLE IF NOT EXISTS {table_name} ({', '.join(columns)})")

        existing = {
            row["name"] for row in conn.execute(f"PRAGMA table_info({table_name})")
        }
        for field in model.fields:
            if field.name not in existing:
                conn.execute(
                    f"ALTER TABLE {table_name} ADD COLUMN {_col(field.name)} {field.storage_type}"
                )

        conn.commit()

    def drop_model(self, api_id: str) -> None:
        """Drop the table for an apiId, deleting every entry in it."""
        conn = self._require_conn()
        conn.execute(f"DROP TABLE IF EXISTS {self._table_name(api_id)}")
        conn.commit()

    def rename_model(self, old_api_id: str, new_api_id: str) -> None:
        """Move a content type's entries to the table of its new apiId."""
        conn = self._require_conn()
        old_table = self._table_name(old_api_id)
        new_table = self._table_name(new_api_id)
        conn.execute(f"DROP TABLE IF EXISTS {new_table}")
        conn.execute(f"ALTER TABLE {old_table} RENAME TO {new_table}")
        conn.commit()

    def drop_fields(self, api_id: str, names: list[str]) -> None:
        """Drop field columns together with every value stored in them."""
        conn = self._require_conn()
        table_name = self._table_name(api_id)
        existing = {
            row["name"] for row in conn.execute(f"PRAGMA table_info({table_name})")
        }
        for name in names:
            if name in existing:
                conn.execute(f"ALTER TABLE {table_name} DROP COLUMN {_col(name)}")
        conn.commit()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, model: CompiledModel, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record.

        Args:
            model: Compiled model of the content type
            data: Record data in storage representation

        Returns:
            The created record with generated ID and timestamps
        """
        conn = self._require_conn()

        record = dict(data)
        record.setdefault("id", uuid.uuid4().hex)

        now = datetime.now(UTC).isoformat()
        record.setdefault("createdAt", now)
        record.setdefault("updatedAt", now)

        column_names = [c for c in model.column_names if c in record]
        placeholders = ", ".join("?" for _ in column_names)
        values = [record[c] for c in column_names]

        table_name = self._table_name(model.api_id)
        quoted = ", ".join(_col(c) for c in column_names)
        conn.execute(f"INSERT INTO {table_name} ({quoted}) VALUES ({placeholders})", values)
        conn.commit()

        return self.get(model, record["id"])  # type: ignore[return-value]

    def get(self, model: CompiledModel, id: str) -> dict[str, Any] | None:
        """Fetch a single record by ID."""
        conn = self._require_conn()

        table_name = self._table_name(model.api_id)
        sql = f"SELECT {self._select_cols(model)} FROM {table_name} WHERE \"id\" = ?"

        row = conn.execute(sql, [id]).fetchone()
        return dict(row) if row else None

    def update(
        self, model: CompiledModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Update an existing record. Bumps updatedAt."""
        conn = self._require_conn()

        record = dict(data)
        record["updatedAt"] = datetime.now(UTC).isoformat()

        # Never rewrite identity or creation metadata
        updatable = [
            c for c in model.column_names
            if c in record and c not in ("id", "createdBy", "createdAt")
        ]

        set_clause = ", ".join(f"{_col(c)} = ?" for c in updatable)
        values = [record[c] for c in updatable]
        values.append(id)

        table_name = self._table_name(model.api_id)
        cursor = conn.execute(
            f"UPDATE {table_name} SET {set_clause} WHERE \"id\" = ?", values
        )
        conn.commit()

        if cursor.rowcount == 0:
            return None
        return self.get(model, id)

    def delete(self, model: CompiledModel, id: str) -> bool:
        """Delete a record."""
        conn = self._require_conn()

        table_name = self._table_name(model.api_id)
        cursor = conn.execute(f"DELETE FROM {table_name} WHERE \"id\" = ?", [id])
        conn.commit()

        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(
        self,
        model: CompiledModel,
        filter: dict | None = None,
        sort: list[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Query records with filtering, sorting, and pagination."""
        conn = self._require_conn()

        table_name = self._table_name(model.api_id)
        where_clause, where_values = self._build_where(filter)

        order_clause = ""
        if sort:
            order_parts = []
            for s in sort:
                direction = "DESC" if s.get("direction") == "desc" else "ASC"
                order_parts.append(f"{_col(s['field'])} {direction}")
            # rowid keeps entries created in the same instant in insertion order
            tiebreak = "DESC" if sort[0].get("direction") == "desc" else "ASC"
            order_parts.append(f"rowid {tiebreak}")
            order_clause = f" ORDER BY {', '.join(order_parts)}"

        limit_clause = ""
        if limit:
            limit_clause = f" LIMIT {int(limit)} OFFSET {int(offset)}"

        sql = (
            f"SELECT {self._select_cols(model)} FROM {table_name}"
            f"{where_clause}{order_clause}{limit_clause}"
        )
        rows = [dict(row) for row in conn.execute(sql, where_values).fetchall()]

        count_sql = f"SELECT COUNT(*) FROM {table_name}{where_clause}"
        total = conn.execute(count_sql, where_values).fetchone()[0]

        return {"data": rows, "total": total}

    def count(self, model: CompiledModel, filter: dict | None = None) -> int:
        """Count records matching an optional filter."""
        conn = self._require_conn()

        table_name = self._table_name(model.api_id)
        where_clause, where_values = self._build_where(filter)
        sql = f"SELECT COUNT(*) FROM {table_name}{where_clause}"
        return conn.execute(sql, where_values).fetchone()[0]

    def existing_ids(self, model: CompiledModel, ids: list[str]) -> set[str]:
        """Return the subset of ids that exist in the model's table."""
        if not ids:
            return set()
        conn = self._require_conn()

        table_name = self._table_name(model.api_id)
        placeholders = ", ".join("?" for _ in ids)
        sql = f"SELECT \"id\" FROM {table_name} WHERE \"id\" IN ({placeholders})"
        return {row["id"] for row in conn.execute(sql, list(ids)).fetchall()}

    def _build_where(self, filter: dict | None) -> tuple[str, list[Any]]:
        if not filter or not filter.get("conditions"):
            return "", []

        conditions = []
        values: list[Any] = []
        for cond in filter["conditions"]:
            sql_cond, vals = self._build_condition(cond)
            if sql_cond:
                conditions.append(sql_cond)
                values.extend(vals)

        if not conditions:
            return "", []

        op = filter.get("operator", "and").upper()
        return f" WHERE {f' {op} '.join(conditions)}", values

    def _build_condition(self, cond: dict) -> tuple[str, list[Any]]:
        """Build SQL condition from filter condition."""
        field = _col(cond["field"])
        op = cond["operator"]
        value = cond.get("value")

        if op == "eq":
            return f"{field} = ?", [value]
        elif op == "neq":
            return f"{field} != ?", [value]
        elif op == "in":
            placeholders = ", ".join(["?" for _ in value])
            return f"{field} IN ({placeholders})", list(value)
        elif op == "contains":
            # Case-insensitive substring match
            return (
                f"casefold({field}) LIKE ? ESCAPE '\\'",
                [f"%{_escape_like(str(value).casefold())}%"],
            )
        elif op == "isNull":
            return f"{field} IS NULL", []

        return "", []

    def _select_cols(self, model: CompiledModel) -> str:
        return ", ".join(_col(c) for c in model.column_names)

    def _table_name(self, api_id: str) -> str:
        """Convert an apiId to its quoted table name."""
        return _col(f"content_{api_id}")
