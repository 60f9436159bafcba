"""Content type definitions.

The registry lives in ``corebase.schema.registry``; it is not re-exported
here because the model compiler imports the definition types from this
package.
"""

from corebase.schema.store import ContentTypeStore
from corebase.schema.types import ContentType, FieldDefinition

__all__ = [
    "ContentType",
    "ContentTypeStore",
    "FieldDefinition",
]
