"""Tests for the SQLAlchemy-backed system stores."""

import pytest

from corebase.errors import ValidationFailed
from corebase.schema.store import ContentTypeStore

from conftest import make_content_type


# =============================================================================
# Content type store
# =============================================================================


class TestContentTypeStore:
    def test_create_and_get(self, content_type_store):
        content_type = make_content_type("article", [
            {"name": "title", "type": "text", "required": True},
            {"name": "category", "type": "enum", "options": ["a", "b"]},
        ])
        created = content_type_store.create(content_type)
        assert created.created_at == created.updated_at
        assert content_type_store.get("article").get_field("category").options == ["a", "b"]

    def test_get_missing(self, content_type_store):
        assert content_type_store.get("missing") is None

    def test_replace_can_rename(self, content_type_store):
        content_type_store.create(make_content_type("article", [{"name": "t", "type": "text"}]))
        replaced = content_type_store.replace(
            "article", make_content_type("post", [{"name": "t", "type": "text"}])
        )
        assert replaced.api_id == "post"
        assert content_type_store.get("article") is None

    def test_replace_missing(self, content_type_store):
        assert content_type_store.replace(
            "missing", make_content_type("missing", [{"name": "t", "type": "text"}])
        ) is None

    def test_delete(self, content_type_store):
        content_type_store.create(make_content_type("article", [{"name": "t", "type": "text"}]))
        assert content_type_store.delete("article") is True
        assert content_type_store.delete("article") is False
        assert content_type_store.list() == []

    def test_survives_reopen(self, content_type_store, db_url):
        content_type_store.create(make_content_type("article", [{"name": "t", "type": "text"}]))
        reopened = ContentTypeStore(db_url)
        try:
            assert [ct.api_id for ct in reopened.list()] == ["article"]
        finally:
            reopened.dispose()


# =============================================================================
# Settings store
# =============================================================================


class TestSettingsStore:
    def test_get_default(self, settings):
        assert settings.get("general", {"siteName": "x"}) == {"siteName": "x"}
        assert settings.content_approval() is False

    def test_set_overwrites(self, settings):
        settings.set("general", {"siteName": "One"})
        settings.set("general", {"siteName": "Two"})
        assert settings.get("general") == {"siteName": "Two"}

    def test_content_approval_toggle(self, settings):
        settings.set_content_approval(True)
        assert settings.content_approval() is True
        settings.set_content_approval(False)
        assert settings.content_approval() is False

    def test_update_returns_all(self, settings):
        result = settings.update({
            "general": {"siteName": "Corebase"},
            "permissions": {"contentApproval": True},
        })
        assert result == {
            "general": {"siteName": "Corebase"},
            "permissions": {"contentApproval": True},
        }
        assert settings.content_approval() is True

    @pytest.mark.parametrize("values", [
        {"theme": {}},
        {"general": "flat"},
        {"permissions": {"contentApproval": "yes"}},
    ])
    def test_update_rejects(self, settings, values):
        with pytest.raises(ValidationFailed):
            settings.update(values)
        assert settings.all() == {}


# =============================================================================
# Media store
# =============================================================================


class TestMediaStore:
    def test_create_and_get(self, media):
        item = media.create("a.png", "/uploads/a.png", "image/png", 10, "u1")
        assert len(item.id) == 32
        assert media.get(item.id).to_dict()["uploadedBy"] == "u1"

    def test_existing_ids(self, media):
        item = media.create("a.png", "/uploads/a.png", "image/png", 10)
        assert media.existing_ids([item.id, "0" * 32]) == {item.id}
        assert media.existing_ids([]) == set()

    def test_list_filters_by_type(self, media):
        media.create("a.png", "/a.png", "image/png", 1)
        media.create("b.pdf", "/b.pdf", "application/pdf", 1)
        assert [m.name for m in media.list(type="application/pdf")] == ["b.pdf"]
        assert len(media.list()) == 2

    def test_delete(self, media):
        item = media.create("a.png", "/a.png", "image/png", 1)
        assert media.delete(item.id) is True
        assert media.get(item.id) is None
        assert media.delete(item.id) is False
