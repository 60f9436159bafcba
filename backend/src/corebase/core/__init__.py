"""Field type vocabulary and typed values."""

from corebase.core.types import FIELD_TYPES, FieldType, get_field_type, is_known_type
from corebase.core.values import FieldValue, from_storage, from_wire

__all__ = [
    "FIELD_TYPES",
    "FieldType",
    "FieldValue",
    "from_storage",
    "from_wire",
    "get_field_type",
    "is_known_type",
]
