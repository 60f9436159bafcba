"""Field type vocabulary with storage and validation defaults."""

from dataclasses import dataclass

# Storage primitives a field type can map to
STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
TIMESTAMP = "timestamp"
JSON = "json"
REFERENCE = "reference"


@dataclass(frozen=True)
class FieldType:
    name: str
    primitive: str
    storage_type: str
    searchable: bool = False


# Built-in field types (closed set)
FIELD_TYPES: dict[str, FieldType] = {
    "text": FieldType(
        name="text",
        primitive=STRING,
        storage_type="TEXT",
        searchable=True,
    ),
    "richtext": FieldType(
        name="richtext",
        primitive=STRING,
        storage_type="TEXT",
        searchable=True,
    ),
    "email": FieldType(
        name="email",
        primitive=STRING,
        storage_type="TEXT",
        searchable=True,
    ),
    "password": FieldType(
        name="password",
        primitive=STRING,
        storage_type="TEXT",
        searchable=True,
    ),
    "enum": FieldType(
        name="enum",
        primitive=STRING,
        storage_type="TEXT",
        searchable=True,
    ),
    "number": FieldType(
        name="number",
        primitive=NUMBER,
        storage_type="NUMERIC",  # integer or real affinity
    ),
    "boolean": FieldType(
        name="boolean",
        primitive=BOOLEAN,
        storage_type="INTEGER",  # 0/1
    ),
    "date": FieldType(
        name="date",
        primitive=TIMESTAMP,
        storage_type="TEXT",  # ISO format
    ),
    "datetime": FieldType(
        name="datetime",
        primitive=TIMESTAMP,
        storage_type="TEXT",  # ISO format
    ),
    "json": FieldType(
        name="json",
        primitive=JSON,
        storage_type="TEXT",  # JSON text
    ),
    "media": FieldType(
        name="media",
        primitive=REFERENCE,
        storage_type="TEXT",  # id, or JSON array of ids
    ),
    "relation": FieldType(
        name="relation",
        primitive=REFERENCE,
        storage_type="TEXT",  # id, or JSON array of ids
    ),
}


def is_known_type(type_name: str) -> bool:
    return type_name in FIELD_TYPES


def get_field_type(type_name: str) -> FieldType:
    """Get field type definition.

    Raises:
        KeyError: If the type is not part of the vocabulary
    """
    try:
        return FIELD_TYPES[type_name]
    except KeyError:
        raise KeyError(f"Unknown field type '{type_name}'") from None


def get_storage_type(type_name: str) -> str:
    """Get SQLite storage type for a field type."""
    return get_field_type(type_name).storage_type
