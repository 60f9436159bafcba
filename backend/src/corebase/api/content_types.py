"""Content type (schema registry) API endpoints."""

from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from corebase.auth import require_authenticated, require_role
from corebase.schema.registry import SchemaRegistry
from corebase.schema.types import ContentType
from corebase.validation import UserContext


class FieldRequest(BaseModel):
    """A field inside a content type definition."""

    name: str = ""
    type: str = ""
    displayName: str | None = None
    required: bool = False
    unique: bool = False
    defaultValue: Any = None
    options: list[str] | None = None
    relationTo: str | None = None
    relationMany: bool = False
    multiple: bool = False


class ContentTypeRequest(BaseModel):
    """Request body for define and replace.

    Everything defaults to empty so the registry, not the request parser,
    reports which invariant a definition breaks.
    """

    apiId: str = ""
    displayName: str = ""
    description: str | None = None
    fields: list[FieldRequest] = []

    def to_content_type(self) -> ContentType:
        return ContentType.from_dict(self.model_dump())


def create_content_types_router(
    get_registry: Callable[[], SchemaRegistry | None],
) -> APIRouter:
    """Create the content types router with injected dependencies."""
    router = APIRouter(prefix="/api/content-types", tags=["content-types"])

    def _registry() -> SchemaRegistry:
        registry = get_registry()
        if not registry:
            raise HTTPException(500, "Schema registry not initialized")
        return registry

    @router.get("")
    async def list_content_types(
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        return {"data": [ct.to_dict() for ct in _registry().list()]}

    @router.post("", status_code=201)
    async def create_content_type(
        request: ContentTypeRequest,
        user: UserContext = Depends(require_role("administrator")),
    ) -> dict[str, Any]:
        created = _registry().define(request.to_content_type(), user)
        return {"data": created.to_dict()}

    @router.get("/{api_id}")
    async def get_content_type(
        api_id: str,
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        return {"data": _registry().get(api_id).to_dict()}

    @router.put("/{api_id}")
    async def replace_content_type(
        api_id: str,
        request: ContentTypeRequest,
        user: UserContext = Depends(require_role("administrator")),
    ) -> dict[str, Any]:
        replaced = _registry().replace(api_id, request.to_content_type(), user)
        return {"data": replaced.to_dict()}

    @router.delete("/{api_id}")
    async def delete_content_type(
        api_id: str,
        confirm: bool = False,
        user: UserContext = Depends(require_role("administrator")),
    ) -> dict[str, Any]:
        """Delete a content type and every entry stored under it.

        The cascade is irreversible, so the caller must pass ``confirm=true``.
        """
        if not confirm:
            raise HTTPException(
                400,
                f"Deleting '{api_id}' removes all of its entries. "
                "Repeat the request with confirm=true.",
            )
        _registry().remove(api_id, user)
        return {"success": True}

    return router
