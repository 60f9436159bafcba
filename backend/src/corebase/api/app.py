"""FastAPI application."""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from corebase.api.content import create_content_router
from corebase.api.content_types import create_content_types_router
from corebase.api.system import create_system_router
from corebase.audit import ActivityStore, AuditHook, AuditSinkRegistry
from corebase.auth import AuthMiddleware, JWTService
from corebase.content.engine import ContentEngine
from corebase.errors import CorebaseError
from corebase.media.store import MediaStore
from corebase.models.registry import ModelRegistry
from corebase.persistence import DatabaseConfig, PersistenceAdapter, create_adapter
from corebase.schema.loader import DEFINITIONS_SUBDIR, DefinitionLoader
from corebase.schema.registry import SchemaRegistry
from corebase.schema.store import ContentTypeStore
from corebase.settings.store import SettingsStore

logger = logging.getLogger(__name__)

ACTIVITY_SINK = "activity"
DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"

# Global instances (initialized on startup)
db: PersistenceAdapter | None = None
models: ModelRegistry | None = None
schema_registry: SchemaRegistry | None = None
engine: ContentEngine | None = None
content_type_store: ContentTypeStore | None = None
settings_store: SettingsStore | None = None
activity_store: ActivityStore | None = None
media_store: MediaStore | None = None
jwt_service: JWTService | None = None
auth_disabled: bool = False


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def _base_path() -> Path:
    """Repository root (cwd, or its parent when running from backend/)."""
    cwd = Path.cwd()
    if cwd.name == "backend":
        return cwd.parent
    return cwd


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    global db, models, schema_registry, engine, content_type_store
    global settings_store, activity_store, media_store, jwt_service, auth_disabled

    base_path = _base_path()

    # Initialize database (supports DATABASE_URL or COREBASE_DB_PATH env vars)
    db_config = DatabaseConfig.from_env(base_path)

    # Ensure parent directory exists for SQLite databases
    if db_config.is_sqlite:
        sqlite_path = db_config.sqlite_path
        if sqlite_path != ":memory:":
            Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    db = create_adapter(db_config)
    db.connect()

    content_type_store = ContentTypeStore(db_config.sqlalchemy_url)
    settings_store = SettingsStore(db_config.sqlalchemy_url)
    activity_store = ActivityStore(db_config.sqlalchemy_url)
    media_store = MediaStore(db_config.sqlalchemy_url)

    # Activity log is the default audit sink
    AuditSinkRegistry.register(ACTIVITY_SINK, activity_store.record)
    audit = AuditHook()

    # Replay stored definitions, then seed any YAML definitions not stored yet
    models = ModelRegistry()
    schema_registry = SchemaRegistry(content_type_store, models, db, audit)
    loaded = schema_registry.load_all()

    loader = DefinitionLoader(base_path / DEFINITIONS_SUBDIR)
    seeded = schema_registry.seed(loader.load_all())
    logger.info(
        "Loaded %d content type(s), seeded %d from %s",
        loaded,
        len(seeded),
        loader.definitions_path,
    )

    engine = ContentEngine(models, db, settings_store, audit, media_store)

    # Auth (can be disabled via environment variable for local use and tests)
    auth_disabled = _env_flag("COREBASE_DISABLE_AUTH")
    secret_key = os.environ.get("COREBASE_SECRET_KEY", DEFAULT_SECRET_KEY)
    jwt_service = JWTService(secret_key)
    if auth_disabled:
        logger.warning("Authentication disabled: all requests run as the system user")

    yield

    # Cleanup
    AuditSinkRegistry.unregister(ACTIVITY_SINK)
    models.clear()
    for store in (content_type_store, settings_store, activity_store, media_store):
        store.dispose()
    db.close()
    db = models = schema_registry = engine = None
    content_type_store = settings_store = activity_store = media_store = None
    jwt_service = None
    auth_disabled = False


app = FastAPI(title="Corebase API", lifespan=lifespan)

# CORS for the admin UI dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    AuthMiddleware,
    get_jwt_service=lambda: jwt_service,
    get_auth_disabled=lambda: auth_disabled,
)


# --- Error mapping ---


@app.exception_handler(CorebaseError)
async def corebase_error_handler(request: Request, exc: CorebaseError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies and query strings in the Corebase error shape."""
    first = exc.errors()[0] if exc.errors() else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationFailed",
            "message": first.get("msg", "Invalid request"),
            "field": ".".join(location) or None,
        },
    )


# --- Routers ---

app.include_router(create_content_types_router(get_registry=lambda: schema_registry))
app.include_router(create_content_router(get_engine=lambda: engine))
app.include_router(
    create_system_router(
        get_models=lambda: models,
        get_engine=lambda: engine,
        get_settings=lambda: settings_store,
        get_activity=lambda: activity_store,
        get_media=lambda: media_store,
    )
)
