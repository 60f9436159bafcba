"""Content entry API endpoints.

One set of routes serves every content type; the apiId path segment selects
the compiled model.
"""

from typing import Any, Callable

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from corebase.auth import require_authenticated, require_role
from corebase.content.engine import DEFAULT_LIMIT, DEFAULT_PAGE, ContentEngine
from corebase.validation import UserContext


class StateRequest(BaseModel):
    """Request body for an explicit workflow transition."""

    state: str


def create_content_router(
    get_engine: Callable[[], ContentEngine | None],
) -> APIRouter:
    """Create the content router with injected dependencies."""
    router = APIRouter(prefix="/api/content", tags=["content"])

    def _engine() -> ContentEngine:
        engine = get_engine()
        if not engine:
            raise HTTPException(500, "Content engine not initialized")
        return engine

    @router.get("/{api_id}")
    async def list_entries(
        api_id: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        search: str | None = None,
        sort: str | None = None,
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        result = _engine().list(api_id, page=page, limit=limit, search=search, sort=sort)
        return result.to_dict()

    @router.post("/{api_id}", status_code=201)
    async def create_entry(
        api_id: str,
        payload: dict[str, Any] = Body(...),
        user: UserContext = Depends(require_role("editor")),
    ) -> dict[str, Any]:
        return {"data": _engine().create(api_id, payload, user)}

    @router.get("/{api_id}/{entry_id}")
    async def get_entry(
        api_id: str,
        entry_id: str,
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        return {"data": _engine().get_by_id(api_id, entry_id)}

    @router.put("/{api_id}/{entry_id}")
    async def update_entry(
        api_id: str,
        entry_id: str,
        payload: dict[str, Any] = Body(...),
        user: UserContext = Depends(require_role("editor")),
    ) -> dict[str, Any]:
        return {"data": _engine().update(api_id, entry_id, payload, user)}

    @router.put("/{api_id}/{entry_id}/state")
    async def transition_entry(
        api_id: str,
        entry_id: str,
        request: StateRequest,
        user: UserContext = Depends(require_role("editor")),
    ) -> dict[str, Any]:
        return {"data": _engine().transition(api_id, entry_id, request.state, user)}

    @router.delete("/{api_id}/{entry_id}")
    async def delete_entry(
        api_id: str,
        entry_id: str,
        user: UserContext = Depends(require_role("editor")),
    ) -> dict[str, Any]:
        _engine().delete(api_id, entry_id, user)
        return {"success": True}

    return router
