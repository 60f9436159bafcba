"""Generic content engine: CRUD, reference normalization and workflow."""

from corebase.content.engine import MAX_LIMIT, ContentEngine, ContentPage
from corebase.content.normalizer import (
    DROP_LITERALS,
    ID_LENGTH,
    is_valid_id,
    normalize_references,
)
from corebase.content.workflow import State, parse_state, resolve_transition

__all__ = [
    "ContentEngine",
    "ContentPage",
    "DROP_LITERALS",
    "ID_LENGTH",
    "MAX_LIMIT",
    "State",
    "is_valid_id",
    "normalize_references",
    "parse_state",
    "resolve_transition",
]
