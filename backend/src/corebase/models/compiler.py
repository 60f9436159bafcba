"""Compile content type definitions into storage models.

A compiled model is pure metadata: the fields of one content type resolved
against the field type vocabulary, plus the system attributes every entry
carries. It holds no rows; the persistence adapter uses it to shape the
per-content-type table and the content engine uses it to validate payloads.
"""

from dataclasses import dataclass
from typing import Any

from corebase.core.types import REFERENCE, get_field_type
from corebase.schema.types import ContentType, FieldDefinition

# System attributes present on every entry, in column order
SYSTEM_FIELDS = ("id", "state", "createdBy", "createdAt", "updatedAt")


@dataclass(frozen=True)
class CompiledField:
    name: str
    type: str
    primitive: str
    storage_type: str
    required: bool = False
    unique: bool = False
    default: Any = None
    options: tuple[str, ...] = ()
    many: bool = False
    relation_to: str | None = None
    searchable: bool = False

    @property
    def is_reference(self) -> bool:
        return self.primitive == REFERENCE


@dataclass(frozen=True)
class CompiledModel:
    api_id: str
    fields: tuple[CompiledField, ...]

    def field(self, name: str) -> CompiledField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def column_names(self) -> tuple[str, ...]:
        """Storage columns: system attributes followed by declared fields."""
        return SYSTEM_FIELDS + self.field_names

    @property
    def searchable_fields(self) -> tuple[CompiledField, ...]:
        return tuple(f for f in self.fields if f.searchable)

    @property
    def reference_fields(self) -> tuple[CompiledField, ...]:
        return tuple(f for f in self.fields if f.is_reference)

    @property
    def required_fields(self) -> tuple[CompiledField, ...]:
        return tuple(f for f in self.fields if f.required)

    @property
    def unique_fields(self) -> tuple[CompiledField, ...]:
        return tuple(f for f in self.fields if f.unique)


def compile_field(definition: FieldDefinition) -> CompiledField:
    """Resolve one field definition against the vocabulary."""
    field_type = get_field_type(definition.type)

    many = False
    if definition.type == "relation":
        many = bool(definition.relation_many)
    elif definition.type == "media":
        many = bool(definition.multiple)

    return CompiledField(
        name=definition.name,
        type=definition.type,
        primitive=field_type.primitive,
        storage_type=field_type.storage_type,
        required=definition.required,
        unique=definition.unique,
        default=definition.default_value,
        options=tuple(definition.options or ()) if definition.type == "enum" else (),
        many=many,
        relation_to=definition.relation_to if definition.type == "relation" else None,
        searchable=field_type.searchable,
    )


def compile_model(content_type: ContentType) -> CompiledModel:
    """Deterministically compile a content type into a CompiledModel.

    Field order follows the definition. The content type is expected to have
    passed schema registry validation already.
    """
    return CompiledModel(
        api_id=content_type.api_id,
        fields=tuple(compile_field(f) for f in content_type.fields),
    )
