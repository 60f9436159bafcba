"""PersistenceAdapter Protocol: shared interface for content entry storage."""

from typing import Any, Protocol, runtime_checkable

from corebase.models.compiler import CompiledModel


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Interface all persistence adapters must implement.

    Matches the public API of SQLiteAdapter. Records are exchanged in their
    storage representation (see corebase.core.values); the content engine
    owns conversion to and from the wire.
    """

    conn: Any

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def initialize_model(self, model: CompiledModel) -> None: ...

    def drop_model(self, api_id: str) -> None: ...

    def rename_model(self, old_api_id: str, new_api_id: str) -> None: ...

    def drop_fields(self, api_id: str, names: list[str]) -> None: ...

    def create(self, model: CompiledModel, data: dict[str, Any]) -> dict[str, Any]: ...

    def get(self, model: CompiledModel, id: str) -> dict[str, Any] | None: ...

    def update(
        self, model: CompiledModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None: ...

    def delete(self, model: CompiledModel, id: str) -> bool: ...

    def query(
        self,
        model: CompiledModel,
        filter: dict | None = None,
        sort: list[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]: ...

    def count(self, model: CompiledModel, filter: dict | None = None) -> int: ...

    def existing_ids(self, model: CompiledModel, ids: list[str]) -> set[str]: ...
