"""Process-wide registry of compiled models keyed by apiId.

Reads take the current snapshot without locking. Writes build a new mapping
and swap it in under a lock, so a reader sees either the old model or the new
one for an apiId, never a mix.
"""

import logging
import threading
from types import MappingProxyType
from typing import Mapping

from corebase.errors import NotFound
from corebase.models.compiler import CompiledModel

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Owner of the apiId -> CompiledModel map."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._models: Mapping[str, CompiledModel] = MappingProxyType({})

    def register(self, model: CompiledModel) -> None:
        """Atomically add or replace the model for its apiId."""
        with self._lock:
            updated = dict(self._models)
            replaced = model.api_id in updated
            updated[model.api_id] = model
            self._models = MappingProxyType(updated)
        logger.info(
            "%s model for content type '%s' (%d fields)",
            "Recompiled" if replaced else "Compiled",
            model.api_id,
            len(model.fields),
        )

    def unregister(self, api_id: str) -> bool:
        """Remove the model for an apiId. Returns False if none was registered."""
        with self._lock:
            if api_id not in self._models:
                return False
            updated = dict(self._models)
            del updated[api_id]
            self._models = MappingProxyType(updated)
        logger.info("Dropped model for content type '%s'", api_id)
        return True

    def get(self, api_id: str) -> CompiledModel | None:
        return self._models.get(api_id)

    def require(self, api_id: str) -> CompiledModel:
        """Get the model for an apiId.

        Raises:
            NotFound: If no model is registered for the apiId
        """
        model = self._models.get(api_id)
        if model is None:
            raise NotFound(f"Content type '{api_id}' not found")
        return model

    def snapshot(self) -> Mapping[str, CompiledModel]:
        return self._models

    def list_ids(self) -> list[str]:
        return sorted(self._models.keys())

    def clear(self) -> None:
        """Drop every model. Used at shutdown and in tests."""
        with self._lock:
            self._models = MappingProxyType({})
