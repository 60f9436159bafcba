"""Generic CRUD engine for content entries.

Every operation resolves the compiled model for an apiId from the model
registry first and then works purely from that model: no per-type code
exists anywhere. Payloads flow

    wire dict -> reference normalization -> field validation
              -> typed values -> storage dict -> persistence adapter

and rows flow back the other way. Successful mutations emit an audit event
after the write; audit failures never reach the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from corebase.audit import CREATE, DELETE, STATE_CHANGE, UPDATE, AuditHook, compute_changes
from corebase.auth.permissions import is_privileged
from corebase.content.normalizer import (
    cleared_references,
    is_valid_id,
    normalize_references,
)
from corebase.content.workflow import INITIAL_STATE, resolve_transition
from corebase.core.values import from_storage, from_wire
from corebase.errors import (
    Conflict,
    Forbidden,
    NotFound,
    ValidationFailed,
    storage_errors,
)
from corebase.media.store import MediaStore
from corebase.models.compiler import SYSTEM_FIELDS, CompiledModel
from corebase.models.registry import ModelRegistry
from corebase.persistence.adapter import PersistenceAdapter
from corebase.settings.store import SettingsStore
from corebase.validation import Operation, UserContext, is_empty, validate_record

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

DEFAULT_SORT = [{"field": "createdAt", "direction": "desc"}]


@dataclass
class ContentPage:
    """One page of a list query."""

    entries: list[dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.entries,
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total_count,
                "pages": self.pages,
            },
            "totalCount": self.total_count,
        }


class ContentEngine:
    """CRUD, list and workflow operations over any compiled content type."""

    def __init__(
        self,
        models: ModelRegistry,
        adapter: PersistenceAdapter,
        settings: SettingsStore | None = None,
        audit: AuditHook | None = None,
        media: MediaStore | None = None,
    ):
        self._models = models
        self._adapter = adapter
        self._settings = settings
        self._audit = audit or AuditHook()
        self._media = media

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(
        self, api_id: str, payload: dict[str, Any], user: UserContext
    ) -> dict[str, Any]:
        """Create an entry in draft state owned by the caller."""
        model = self._models.require(api_id)

        data = normalize_references(self._accepted(model, payload), model)
        self._raise_first(validate_record(model, data, Operation.CREATE))

        for f in model.fields:
            if f.name not in data and f.default is not None:
                data[f.name] = f.default

        storage = self._coerce(model, data)
        self._check_references(model, data)
        self._check_unique(model, storage)

        storage["state"] = INITIAL_STATE.value
        storage["createdBy"] = user.user_id

        with storage_errors("create"):
            row = self._adapter.create(model, storage)

        entry = self._to_wire(model, row)
        self._audit.record(CREATE, api_id, entry["id"], user.user_id)
        return entry

    def list(
        self,
        api_id: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        search: str | None = None,
        sort: str | None = None,
    ) -> ContentPage:
        """Return one page of entries, newest first unless sort says otherwise.

        search matches case-insensitively against every string field (any
        field may match). sort is a field name, prefixed with "-" for
        descending order.
        """
        model = self._models.require(api_id)

        if not isinstance(page, int) or isinstance(page, bool) or page < 1:
            raise ValidationFailed("page must be a positive integer", field="page")
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise ValidationFailed("limit must be a positive integer", field="limit")
        limit = min(limit, MAX_LIMIT)

        filter = None
        if search:
            if not model.searchable_fields:
                return ContentPage(entries=[], total_count=0, page=page, limit=limit)
            filter = {
                "operator": "or",
                "conditions": [
                    {"field": f.name, "operator": "contains", "value": search}
                    for f in model.searchable_fields
                ],
            }

        with storage_errors("list"):
            result = self._adapter.query(
                model,
                filter=filter,
                sort=self._parse_sort(model, sort),
                limit=limit,
                offset=(page - 1) * limit,
            )

        return ContentPage(
            entries=[self._to_wire(model, row) for row in result["data"]],
            total_count=result["total"],
            page=page,
            limit=limit,
        )

    def get_by_id(self, api_id: str, entry_id: str) -> dict[str, Any]:
        model = self._models.require(api_id)
        return self._to_wire(model, self._get_row(model, entry_id))

    def update(
        self,
        api_id: str,
        entry_id: str,
        payload: dict[str, Any],
        user: UserContext,
    ) -> dict[str, Any]:
        """Merge payload over an existing entry.

        A ``state`` key in the payload is routed through the workflow. Blank
        reference values clear the stored reference.
        """
        model = self._models.require(api_id)
        row = self._get_row(model, entry_id)
        self._check_owner(row, user)

        accepted = self._accepted(model, payload)
        cleared = cleared_references(accepted, model)
        data = normalize_references(accepted, model)
        self._raise_first(validate_record(model, data, Operation.UPDATE))

        storage = self._coerce(model, data)
        for name in cleared:
            storage[name] = None
        self._check_references(model, data)
        self._check_unique(model, storage, exclude_id=entry_id)

        previous = self._to_wire(model, row)
        merged = dict(previous)
        merged.update(data)
        for name in cleared:
            merged.pop(name, None)
        for f in model.required_fields:
            if is_empty(merged.get(f.name)):
                raise ValidationFailed(f"Field '{f.name}' is required", field=f.name)

        previous_state = row["state"]
        if payload.get("state") is not None:
            new_state = self._resolve_state(previous_state, payload["state"], user)
            if new_state != previous_state:
                storage["state"] = new_state

        with storage_errors("update"):
            updated = self._adapter.update(model, entry_id, storage)
        if updated is None:
            raise self._not_found(api_id, entry_id)

        entry = self._to_wire(model, updated)
        self._audit.record(
            UPDATE,
            api_id,
            entry_id,
            user.user_id,
            details={"changes": compute_changes(
                self._field_values(model, entry), self._field_values(model, previous)
            )},
        )
        if entry["state"] != previous_state:
            self._record_state_change(api_id, entry_id, user, previous_state, entry["state"])
        return entry

    def transition(
        self, api_id: str, entry_id: str, state: Any, user: UserContext
    ) -> dict[str, Any]:
        """Move an entry through the workflow. Requesting the current state is a no-op."""
        model = self._models.require(api_id)
        row = self._get_row(model, entry_id)
        self._check_owner(row, user)

        previous_state = row["state"]
        new_state = self._resolve_state(previous_state, state, user)
        if new_state == previous_state:
            return self._to_wire(model, row)

        with storage_errors("transition"):
            updated = self._adapter.update(model, entry_id, {"state": new_state})
        if updated is None:
            raise self._not_found(api_id, entry_id)

        self._record_state_change(api_id, entry_id, user, previous_state, new_state)
        return self._to_wire(model, updated)

    def delete(self, api_id: str, entry_id: str, user: UserContext) -> None:
        """Delete an entry. Entries referencing it keep their (dangling) ids."""
        model = self._models.require(api_id)
        row = self._get_row(model, entry_id)
        self._check_owner(row, user)

        with storage_errors("delete"):
            deleted = self._adapter.delete(model, entry_id)
        if not deleted:
            raise self._not_found(api_id, entry_id)

        self._audit.record(DELETE, api_id, entry_id, user.user_id)

    def count(self, api_id: str) -> int:
        model = self._models.require(api_id)
        with storage_errors("count"):
            return self._adapter.count(model)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _not_found(self, api_id: str, entry_id: str) -> NotFound:
        return NotFound(f"Entry '{entry_id}' not found in '{api_id}'")

    def _get_row(self, model: CompiledModel, entry_id: str) -> dict[str, Any]:
        # Malformed ids and missing ids are indistinguishable to the caller
        if not is_valid_id(entry_id):
            raise self._not_found(model.api_id, entry_id)
        with storage_errors("read"):
            row = self._adapter.get(model, entry_id)
        if row is None:
            raise self._not_found(model.api_id, entry_id)
        return row

    def _check_owner(self, row: dict[str, Any], user: UserContext) -> None:
        if is_privileged(user):
            return
        if user.user_id and row.get("createdBy") == user.user_id:
            return
        raise Forbidden("Only the creator or an administrator can modify this entry")

    def _resolve_state(self, current: str, requested: Any, user: UserContext) -> str:
        content_approval = self._settings.content_approval() if self._settings else False
        return resolve_transition(
            current,
            requested,
            privileged=is_privileged(user),
            content_approval=content_approval,
        ).value

    def _record_state_change(
        self,
        api_id: str,
        entry_id: str,
        user: UserContext,
        previous_state: str,
        new_state: str,
    ) -> None:
        self._audit.record(
            STATE_CHANGE,
            api_id,
            entry_id,
            user.user_id,
            details={"previousState": previous_state, "newState": new_state},
        )

    def _accepted(self, model: CompiledModel, payload: dict[str, Any]) -> dict[str, Any]:
        """Keep only declared fields; system attributes are never client-writable."""
        return {
            key: value
            for key, value in payload.items()
            if key not in SYSTEM_FIELDS and model.field(key) is not None
        }

    def _raise_first(self, errors: list) -> None:
        if not errors:
            return
        # Missing required fields are reported before type errors
        required = [e for e in errors if e.code == "REQUIRED"]
        first = (required or errors)[0]
        raise ValidationFailed(first.message, field=first.field)

    def _coerce(self, model: CompiledModel, data: dict[str, Any]) -> dict[str, Any]:
        storage: dict[str, Any] = {}
        for name, raw in data.items():
            f = model.field(name)
            if raw is None:
                storage[name] = None
                continue
            try:
                storage[name] = from_wire(f, raw).to_storage()
            except ValueError as e:
                raise ValidationFailed(f"Field '{name}' {e}", field=name) from None
        return storage

    def _check_references(self, model: CompiledModel, data: dict[str, Any]) -> None:
        for f in model.reference_fields:
            value = data.get(f.name)
            if value is None:
                continue
            ids = list(dict.fromkeys(value if isinstance(value, list) else [value]))

            if f.type == "media":
                if self._media is None:
                    continue
                with storage_errors("media lookup"):
                    found = self._media.existing_ids(ids)
                target_label = "media"
            else:
                target = self._models.get(f.relation_to) if f.relation_to else None
                if target is None:
                    raise ValidationFailed(
                        f"Field '{f.name}' targets unknown content type '{f.relation_to}'",
                        field=f.name,
                    )
                with storage_errors("reference lookup"):
                    found = self._adapter.existing_ids(target, ids)
                target_label = f"'{target.api_id}'"

            missing = [i for i in ids if i not in found]
            if missing:
                raise ValidationFailed(
                    f"Field '{f.name}' references unknown {target_label} entry '{missing[0]}'",
                    field=f.name,
                )

    def _check_unique(
        self,
        model: CompiledModel,
        storage: dict[str, Any],
        exclude_id: str | None = None,
    ) -> None:
        for f in model.unique_fields:
            value = storage.get(f.name)
            if value is None:
                continue
            conditions = [{"field": f.name, "operator": "eq", "value": value}]
            if exclude_id:
                conditions.append({"field": "id", "operator": "neq", "value": exclude_id})
            with storage_errors("unique check"):
                taken = self._adapter.count(
                    model, {"operator": "and", "conditions": conditions}
                )
            if taken:
                raise Conflict(f"Field '{f.name}' must be unique", field=f.name)

    def _parse_sort(self, model: CompiledModel, sort: str | None) -> list[dict[str, str]]:
        if not sort:
            return DEFAULT_SORT
        direction = "asc"
        name = sort
        if sort.startswith("-"):
            direction = "desc"
            name = sort[1:]
        if name not in model.column_names:
            raise ValidationFailed(f"Cannot sort by unknown field '{name}'", field="sort")
        return [{"field": name, "direction": direction}]

    def _field_values(self, model: CompiledModel, entry: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in entry.items() if k in model.field_names}

    def _to_wire(self, model: CompiledModel, row: dict[str, Any]) -> dict[str, Any]:
        """Convert a stored row to the wire entry shape.

        Null field values are omitted rather than sent as null.
        """
        entry: dict[str, Any] = {"id": row["id"]}
        for f in model.fields:
            value = from_storage(f, row.get(f.name))
            if value is not None:
                entry[f.name] = value.to_wire()
        entry["state"] = row["state"]
        entry["createdBy"] = row.get("createdBy")
        entry["createdAt"] = row.get("createdAt")
        entry["updatedAt"] = row.get("updatedAt")
        return entry
