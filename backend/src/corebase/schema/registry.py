"""Schema registry: owner of content type definitions.

Definitions are validated, stored, and compiled into models before any
mutating call returns, so CRUD calls made right after a definition change
already see the new model.

    registry = SchemaRegistry(store, models, adapter)
    registry.define(ContentType.from_dict({...}))
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import replace as dc_replace

from corebase.audit import CONTENT_TYPE, CREATE, DELETE, UPDATE, AuditHook
from corebase.core.types import STRING, is_known_type
from corebase.core.values import from_wire
from corebase.errors import Conflict, CorebaseError, InvalidDefinition, NotFound, storage_errors
from corebase.models.compiler import (
    SYSTEM_FIELDS,
    CompiledField,
    CompiledModel,
    compile_field,
    compile_model,
)
from corebase.models.registry import ModelRegistry
from corebase.persistence.adapter import PersistenceAdapter
from corebase.schema.store import ContentTypeStore
from corebase.schema.types import ContentType
from corebase.validation.types import UserContext

logger = logging.getLogger(__name__)

API_ID_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")
FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def definition_issues(
    content_type: ContentType, known_api_ids: set[str]
) -> list[InvalidDefinition]:
    """Check a definition's invariants. Returns every problem found.

    Args:
        content_type: The definition to check
        known_api_ids: apiIds relation fields may target (the definition's own
                       apiId is always allowed)
    """
    issues: list[InvalidDefinition] = []

    if not API_ID_PATTERN.match(content_type.api_id or ""):
        issues.append(InvalidDefinition(
            f"Invalid apiId '{content_type.api_id}': must start with a lowercase "
            "letter and contain only lowercase letters, digits and underscores",
            field="apiId",
        ))

    if not (content_type.display_name or "").strip():
        issues.append(InvalidDefinition("displayName is required", field="displayName"))

    if not content_type.fields:
        issues.append(InvalidDefinition("At least one field is required", field="fields"))

    targets = set(known_api_ids) | {content_type.api_id}
    seen: set[str] = set()

    for f in content_type.fields:
        if not FIELD_NAME_PATTERN.match(f.name or ""):
            issues.append(InvalidDefinition(
                f"Invalid field name '{f.name}': must start with a letter and "
                "contain only letters, digits and underscores",
                field=f.name or "fields",
            ))
            continue

        if f.name in SYSTEM_FIELDS:
            issues.append(InvalidDefinition(
                f"Field name '{f.name}' is reserved", field=f.name
            ))
        if f.name in seen:
            issues.append(InvalidDefinition(
                f"Duplicate field name '{f.name}'", field=f.name
            ))
        seen.add(f.name)

        reported = len(issues)
        if not is_known_type(f.type):
            issues.append(InvalidDefinition(
                f"Field '{f.name}' has unknown type '{f.type}'", field=f.name
            ))
            continue

        if f.type == "enum":
            options = f.options
            if (
                not isinstance(options, list)
                or not options
                or not all(isinstance(o, str) and o for o in options)
            ):
                issues.append(InvalidDefinition(
                    f"Enum field '{f.name}' must declare at least one option",
                    field=f.name,
                ))

        if f.type == "relation":
            if not f.relation_to:
                issues.append(InvalidDefinition(
                    f"Relation field '{f.name}' must declare relationTo",
                    field=f.name,
                ))
            elif f.relation_to not in targets:
                issues.append(InvalidDefinition(
                    f"Relation field '{f.name}' targets unknown content type "
                    f"'{f.relation_to}'",
                    field=f.name,
                ))

        # Only well-formed fields can coerce their default
        if f.default_value is not None and len(issues) == reported:
            try:
                from_wire(compile_field(f), f.default_value)
            except ValueError as e:
                issues.append(InvalidDefinition(
                    f"Default value of field '{f.name}' {e}", field=f.name
                ))

    return issues


class SchemaRegistry:
    """Create, read, replace and remove content type definitions."""

    def __init__(
        self,
        store: ContentTypeStore,
        models: ModelRegistry,
        adapter: PersistenceAdapter,
        audit: AuditHook | None = None,
    ):
        self._store = store
        self._models = models
        self._adapter = adapter
        self._audit = audit or AuditHook()
        # Serializes definition changes; reads go straight to the store
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, api_id: str) -> ContentType:
        """Raises NotFound for unknown apiIds."""
        with storage_errors("read content type"):
            content_type = self._store.get(api_id)
        if content_type is None:
            raise NotFound(f"Content type '{api_id}' not found")
        return content_type

    def list(self) -> list[ContentType]:
        with storage_errors("list content types"):
            return self._store.list()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def define(
        self, content_type: ContentType, user: UserContext | None = None
    ) -> ContentType:
        """Create a content type and compile its model.

        Raises:
            InvalidDefinition: The definition breaks an invariant
            Conflict: The apiId is already taken
        """
        with self._lock:
            stored_ids = self._stored_ids()
            self._validate(content_type, stored_ids)
            if content_type.api_id in stored_ids:
                raise Conflict(
                    f"Content type '{content_type.api_id}' already exists",
                    field="apiId",
                )

            model = compile_model(content_type)
            with storage_errors("define content type"):
                self._adapter.initialize_model(model)
                stored = self._store.create(content_type)
            self._models.register(model)

        self._audit.record(
            CREATE,
            CONTENT_TYPE,
            stored.api_id,
            user.user_id if user else None,
            details={"displayName": stored.display_name},
        )
        return stored

    def replace(
        self,
        api_id: str,
        content_type: ContentType,
        user: UserContext | None = None,
    ) -> ContentType:
        """Replace a definition wholesale.

        If the apiId changes, existing entries move to the new apiId and
        relation fields of other content types that targeted the old apiId
        are retargeted. Stored values of fields that were removed or whose
        storage shape changed are dropped.

        Raises:
            NotFound: api_id is unknown
            InvalidDefinition: The definition breaks an invariant
            Conflict: The new apiId is already taken
        """
        with self._lock:
            stored_ids = self._stored_ids()
            if api_id not in stored_ids:
                raise NotFound(f"Content type '{api_id}' not found")

            new_id = content_type.api_id
            renamed = new_id != api_id
            self._validate(content_type, (stored_ids - {api_id}) | {new_id})
            if renamed and new_id in stored_ids:
                raise Conflict(f"Content type '{new_id}' already exists", field="apiId")

            model = compile_model(content_type)
            stale = _stale_fields(compile_model(self.get(api_id)), model)
            with storage_errors("replace content type"):
                if renamed:
                    self._adapter.rename_model(api_id, new_id)
                if stale:
                    logger.info(
                        "Dropping stored values of '%s' fields: %s", new_id, ", ".join(stale)
                    )
                    self._adapter.drop_fields(new_id, stale)
                self._adapter.initialize_model(model)
                stored = self._store.replace(api_id, content_type)
                retargeted = self._retarget_relations(api_id, new_id) if renamed else []

            if renamed:
                self._models.unregister(api_id)
            self._models.register(model)
            for other in retargeted:
                self._models.register(compile_model(other))

        details = {"displayName": stored.display_name}
        if renamed:
            details["previousApiId"] = api_id
        self._audit.record(
            UPDATE, CONTENT_TYPE, new_id, user.user_id if user else None, details=details
        )
        return stored

    def remove(self, api_id: str, user: UserContext | None = None) -> None:
        """Delete a content type together with every one of its entries.

        Raises:
            NotFound: api_id is unknown
            Conflict: Relation fields of other content types still target it
        """
        with self._lock:
            content_types = self.list()
            if api_id not in {ct.api_id for ct in content_types}:
                raise NotFound(f"Content type '{api_id}' not found")

            for other in content_types:
                if other.api_id == api_id:
                    continue
                for f in other.fields:
                    if f.type == "relation" and f.relation_to == api_id:
                        raise Conflict(
                            f"Content type '{api_id}' is referenced by field "
                            f"'{f.name}' of '{other.api_id}'",
                            field="apiId",
                        )

            # Unregister first so in-flight CRUD fails fast with NotFound
            self._models.unregister(api_id)
            with storage_errors("remove content type"):
                self._adapter.drop_model(api_id)
                self._store.delete(api_id)

        logger.info("Removed content type '%s' and all of its entries", api_id)
        self._audit.record(DELETE, CONTENT_TYPE, api_id, user.user_id if user else None)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def load_all(self) -> int:
        """Compile every stored definition. Returns the number of models registered.

        Definitions that no longer compile are logged and skipped.
        """
        loaded = 0
        for content_type in self.list():
            try:
                model = compile_model(content_type)
                with storage_errors("load content type"):
                    self._adapter.initialize_model(model)
            except (KeyError, CorebaseError) as e:
                logger.warning("Skipping content type '%s': %s", content_type.api_id, e)
                continue
            self._models.register(model)
            loaded += 1
        return loaded

    def seed(self, definitions: list[ContentType]) -> list[str]:
        """Define every definition whose apiId does not exist yet.

        Definitions are retried in passes so relation targets may appear in
        any order. Returns the apiIds that were created.
        """
        existing = self._stored_ids()
        pending = [d for d in definitions if d.api_id not in existing]
        created: list[str] = []

        while pending:
            failed: list[tuple[ContentType, CorebaseError]] = []
            for definition in pending:
                try:
                    self.define(definition)
                except CorebaseError as e:
                    failed.append((definition, e))
                else:
                    created.append(definition.api_id)

            if len(failed) == len(pending):
                for definition, error in failed:
                    logger.warning(
                        "Could not seed content type '%s': %s",
                        definition.api_id,
                        error.message,
                    )
                break
            pending = [definition for definition, _ in failed]

        return created

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _stored_ids(self) -> set[str]:
        return {ct.api_id for ct in self.list()}

    def _validate(self, content_type: ContentType, known_api_ids: set[str]) -> None:
        issues = definition_issues(content_type, known_api_ids)
        if issues:
            raise issues[0]

    def _retarget_relations(self, old_id: str, new_id: str) -> list[ContentType]:
        """Point relation fields at a renamed apiId. Returns the changed types."""
        changed = []
        for other in self._store.list():
            if other.api_id == new_id:
                continue
            if not any(
                f.type == "relation" and f.relation_to == old_id for f in other.fields
            ):
                continue
            other.fields = [
                dc_replace(f, relation_to=new_id)
                if f.type == "relation" and f.relation_to == old_id
                else f
                for f in other.fields
            ]
            changed.append(self._store.replace(other.api_id, other))
        return changed


def _storage_shape(field: CompiledField, api_id: str) -> tuple:
    """What a stored column value means; equal shapes decode the same way."""
    # Every string type stores plain text
    kind = STRING if field.primitive == STRING else field.type
    # A self-relation follows its own content type through a rename
    target = "<self>" if field.relation_to == api_id else field.relation_to
    return (kind, field.many, target)


def _stale_fields(old: CompiledModel, new: CompiledModel) -> list[str]:
    """Fields of old whose stored values the new model cannot read."""
    stale = []
    for f in old.fields:
        replacement = new.field(f.name)
        if replacement is None or (
            _storage_shape(f, old.api_id) != _storage_shape(replacement, new.api_id)
        ):
            stale.append(f.name)
    return stale
