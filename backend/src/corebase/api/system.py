"""Settings, activity, media and health endpoints."""

from typing import Any, Callable

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel

from corebase.audit import CREATE, DELETE, ActivityStore, AuditHook
from corebase.auth import require_authenticated, require_role
from corebase.content.engine import ContentEngine
from corebase.errors import NotFound
from corebase.media.store import MediaStore
from corebase.models.registry import ModelRegistry
from corebase.settings.store import SettingsStore
from corebase.validation import UserContext

MEDIA = "media"


class MediaRequest(BaseModel):
    """Metadata of an already uploaded file."""

    name: str
    url: str
    type: str
    size: int


def _require(service: Any, name: str) -> Any:
    if not service:
        raise HTTPException(500, f"{name} not initialized")
    return service


def create_system_router(
    get_models: Callable[[], ModelRegistry | None],
    get_engine: Callable[[], ContentEngine | None],
    get_settings: Callable[[], SettingsStore | None],
    get_activity: Callable[[], ActivityStore | None],
    get_media: Callable[[], MediaStore | None],
) -> APIRouter:
    """Create the system router with injected dependencies."""
    router = APIRouter(prefix="/api", tags=["system"])
    audit = AuditHook()

    @router.get("/health")
    async def health() -> dict[str, Any]:
        models = get_models()
        return {
            "status": "ok",
            "contentTypes": len(models.list_ids()) if models else 0,
        }

    @router.get("/stats")
    async def stats(
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        """Entry counts per content type."""
        models: ModelRegistry = _require(get_models(), "Model registry")
        engine: ContentEngine = _require(get_engine(), "Content engine")
        counts = {api_id: engine.count(api_id) for api_id in models.list_ids()}
        return {
            "contentTypes": len(counts),
            "entries": sum(counts.values()),
            "byContentType": counts,
        }

    # --- Settings ---

    @router.get("/settings")
    async def get_settings_endpoint(
        user: UserContext = Depends(require_role("administrator")),
    ) -> dict[str, Any]:
        settings: SettingsStore = _require(get_settings(), "Settings store")
        return {"data": settings.all()}

    @router.put("/settings")
    async def update_settings(
        values: dict[str, Any] = Body(...),
        user: UserContext = Depends(require_role("administrator")),
    ) -> dict[str, Any]:
        settings: SettingsStore = _require(get_settings(), "Settings store")
        return {"data": settings.update(values)}

    # --- Activity ---

    @router.get("/activity")
    async def list_activity(
        limit: int = Query(20, ge=1, le=100),
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        activity: ActivityStore = _require(get_activity(), "Activity store")
        return {"data": activity.list_recent(limit)}

    # --- Media ---

    @router.get("/media")
    async def list_media(
        type: str | None = None,
        limit: int = Query(50, ge=1, le=100),
        offset: int = Query(0, ge=0),
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        media: MediaStore = _require(get_media(), "Media store")
        return {"data": [item.to_dict() for item in media.list(type, limit, offset)]}

    @router.post("/media", status_code=201)
    async def create_media(
        request: MediaRequest,
        user: UserContext = Depends(require_role("editor")),
    ) -> dict[str, Any]:
        media: MediaStore = _require(get_media(), "Media store")
        item = media.create(
            name=request.name,
            url=request.url,
            type=request.type,
            size=request.size,
            uploaded_by=user.user_id,
        )
        audit.record(CREATE, MEDIA, item.id, user.user_id, details={"name": item.name})
        return {"data": item.to_dict()}

    @router.get("/media/{media_id}")
    async def get_media_item(
        media_id: str,
        user: UserContext = Depends(require_authenticated),
    ) -> dict[str, Any]:
        media: MediaStore = _require(get_media(), "Media store")
        item = media.get(media_id)
        if not item:
            raise NotFound(f"Media '{media_id}' not found")
        return {"data": item.to_dict()}

    @router.delete("/media/{media_id}")
    async def delete_media(
        media_id: str,
        user: UserContext = Depends(require_role("editor")),
    ) -> dict[str, Any]:
        media: MediaStore = _require(get_media(), "Media store")
        if not media.delete(media_id):
            raise NotFound(f"Media '{media_id}' not found")
        audit.record(DELETE, MEDIA, media_id, user.user_id)
        return {"success": True}

    return router
