"""Shared fixtures: a file-backed SQLite database wired into every store."""

import pytest

from corebase.audit import ActivityStore, AuditHook, AuditSinkRegistry
from corebase.content.engine import ContentEngine
from corebase.media.store import MediaStore
from corebase.models.registry import ModelRegistry
from corebase.persistence.sqlite import SQLiteAdapter
from corebase.schema.registry import SchemaRegistry
from corebase.schema.store import ContentTypeStore
from corebase.schema.types import ContentType
from corebase.settings.store import SettingsStore
from corebase.validation import UserContext


@pytest.fixture(autouse=True)
def clear_audit_sinks():
    """Sinks are class-level; keep tests isolated."""
    AuditSinkRegistry.clear()
    yield
    AuditSinkRegistry.clear()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def db_url(db_path):
    return f"sqlite:///{db_path}"


@pytest.fixture
def adapter(db_path):
    adapter = SQLiteAdapter(db_path)
    adapter.connect()
    yield adapter
    adapter.close()


@pytest.fixture
def models():
    return ModelRegistry()


@pytest.fixture
def content_type_store(db_url):
    store = ContentTypeStore(db_url)
    yield store
    store.dispose()


@pytest.fixture
def settings(db_url):
    store = SettingsStore(db_url)
    yield store
    store.dispose()


@pytest.fixture
def media(db_url):
    store = MediaStore(db_url)
    yield store
    store.dispose()


@pytest.fixture
def activity(db_url):
    store = ActivityStore(db_url)
    yield store
    store.dispose()


@pytest.fixture
def events():
    """Collects every audit event emitted during a test."""
    collected = []
    AuditSinkRegistry.register("collect", collected.append)
    return collected


@pytest.fixture
def registry(content_type_store, models, adapter):
    return SchemaRegistry(content_type_store, models, adapter, AuditHook())


@pytest.fixture
def engine(models, adapter, settings, media):
    return ContentEngine(models, adapter, settings, AuditHook(), media)


@pytest.fixture
def admin():
    return UserContext(user_id="admin-1", roles=["administrator"])


@pytest.fixture
def editor():
    return UserContext(user_id="editor-1", roles=["editor"])


@pytest.fixture
def other_editor():
    return UserContext(user_id="editor-2", roles=["editor"])


def make_content_type(api_id: str, fields: list[dict], display_name: str | None = None) -> ContentType:
    return ContentType.from_dict({
        "apiId": api_id,
        "displayName": display_name or api_id.title(),
        "fields": fields,
    })
