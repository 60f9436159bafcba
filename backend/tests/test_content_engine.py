"""Tests for the generic CRUD engine."""

import logging

import pytest

from corebase.audit import CREATE, DELETE, STATE_CHANGE, UPDATE, AuditSinkRegistry
from corebase.errors import Conflict, Forbidden, NotFound, ValidationFailed

from conftest import make_content_type

MISSING_ID = "0" * 32


@pytest.fixture
def schema(registry):
    """author <- article, with one field of every interesting type."""
    registry.define(make_content_type("author", [
        {"name": "name", "type": "text", "required": True},
        {"name": "email", "type": "email", "unique": True},
    ]))
    registry.define(make_content_type("article", [
        {"name": "title", "type": "text", "required": True},
        {"name": "body", "type": "richtext"},
        {"name": "category", "type": "enum", "options": ["news", "opinion"], "defaultValue": "news"},
        {"name": "featured", "type": "boolean", "defaultValue": False},
        {"name": "views", "type": "number"},
        {"name": "publishedOn", "type": "date"},
        {"name": "meta", "type": "json"},
        {"name": "author", "type": "relation", "relationTo": "author"},
        {"name": "related", "type": "relation", "relationTo": "article", "relationMany": True},
        {"name": "cover", "type": "media"},
    ]))
    return registry


def create_articles(engine, user, count):
    return [engine.create("article", {"title": f"Post {i:02d}"}, user) for i in range(count)]


# =============================================================================
# Create / get
# =============================================================================


class TestCreate:
    def test_round_trip(self, engine, schema, editor):
        entry = engine.create("article", {
            "title": "Hello",
            "views": "12",
            "publishedOn": "2024-03-01",
            "meta": {"seo": {"noindex": True}},
        }, editor)

        fetched = engine.get_by_id("article", entry["id"])
        assert fetched == entry
        assert fetched["title"] == "Hello"
        assert fetched["views"] == 12
        assert fetched["publishedOn"] == "2024-03-01"
        assert fetched["meta"] == {"seo": {"noindex": True}}

    def test_system_attributes(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        assert len(entry["id"]) == 32
        assert entry["state"] == "draft"
        assert entry["createdBy"] == editor.user_id
        assert entry["createdAt"] == entry["updatedAt"]

    def test_client_cannot_set_system_attributes(self, engine, schema, editor):
        entry = engine.create("article", {
            "title": "Hello",
            "id": MISSING_ID,
            "state": "published",
            "createdBy": "someone-else",
        }, editor)
        assert entry["id"] != MISSING_ID
        assert entry["state"] == "draft"
        assert entry["createdBy"] == editor.user_id

    def test_unknown_keys_are_ignored(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello", "nonsense": 1}, editor)
        assert "nonsense" not in entry

    def test_defaults_applied(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        assert entry["category"] == "news"
        assert entry["featured"] is False

    def test_absent_optional_fields_omitted(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        assert "body" not in entry
        assert "author" not in entry

    @pytest.mark.parametrize("payload", [{}, {"title": ""}, {"title": "   "}, {"title": None}])
    def test_required_field(self, engine, schema, editor, payload):
        with pytest.raises(ValidationFailed) as exc_info:
            engine.create("article", payload, editor)
        assert exc_info.value.field == "title"
        assert exc_info.value.message == "Field 'title' is required"
        assert engine.count("article") == 0

    def test_required_reported_before_type_errors(self, engine, schema, editor):
        with pytest.raises(ValidationFailed) as exc_info:
            engine.create("article", {"views": "many"}, editor)
        assert exc_info.value.field == "title"

    @pytest.mark.parametrize("field,value", [
        ("views", "many"),
        ("featured", "perhaps"),
        ("publishedOn", "someday"),
        ("category", "sports"),
        ("meta", "{oops"),
        ("views", "NaN"),
        ("views", "Infinity"),
        ("views", float("-inf")),
    ])
    def test_type_errors(self, engine, schema, editor, field, value):
        with pytest.raises(ValidationFailed) as exc_info:
            engine.create("article", {"title": "Hello", field: value}, editor)
        assert exc_info.value.field == field

    def test_unknown_content_type(self, engine, schema, editor):
        with pytest.raises(NotFound):
            engine.create("ghost", {"title": "Hello"}, editor)

    def test_get_unknown_entry(self, engine, schema):
        with pytest.raises(NotFound):
            engine.get_by_id("article", MISSING_ID)

    def test_get_malformed_id_is_not_found(self, engine, schema):
        with pytest.raises(NotFound):
            engine.get_by_id("article", "not-an-id")


# =============================================================================
# References
# =============================================================================


class TestReferences:
    def test_relation_to_existing_entry(self, engine, schema, editor):
        author = engine.create("author", {"name": "Ada"}, editor)
        article = engine.create("article", {"title": "Hello", "author": author["id"]}, editor)
        assert article["author"] == author["id"]

    def test_relation_to_missing_entry(self, engine, schema, editor):
        with pytest.raises(ValidationFailed) as exc_info:
            engine.create("article", {"title": "Hello", "author": MISSING_ID}, editor)
        assert exc_info.value.field == "author"

    def test_blank_reference_is_dropped(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello", "author": "", "related": ["", "null"]}, editor)
        assert "author" not in entry
        assert "related" not in entry

    def test_self_relation_many(self, engine, schema, editor):
        first = engine.create("article", {"title": "One"}, editor)
        second = engine.create("article", {"title": "Two", "related": [first["id"], ""]}, editor)
        assert second["related"] == [first["id"]]

    def test_media_reference(self, engine, schema, editor, media):
        item = media.create("cover.png", "/uploads/cover.png", "image/png", 1024, editor.user_id)
        entry = engine.create("article", {"title": "Hello", "cover": item.id}, editor)
        assert entry["cover"] == item.id

        with pytest.raises(ValidationFailed):
            engine.create("article", {"title": "Hello", "cover": MISSING_ID}, editor)

    def test_deleting_target_leaves_dangling_reference(self, engine, schema, editor):
        author = engine.create("author", {"name": "Ada"}, editor)
        article = engine.create("article", {"title": "Hello", "author": author["id"]}, editor)
        engine.delete("author", author["id"], editor)
        assert engine.get_by_id("article", article["id"])["author"] == author["id"]

    def test_update_blank_clears_reference(self, engine, schema, editor):
        author = engine.create("author", {"name": "Ada"}, editor)
        article = engine.create("article", {"title": "Hello", "author": author["id"]}, editor)
        updated = engine.update("article", article["id"], {"author": ""}, editor)
        assert "author" not in updated


# =============================================================================
# Unique
# =============================================================================


class TestUnique:
    def test_duplicate_value_conflicts(self, engine, schema, editor):
        engine.create("author", {"name": "Ada", "email": "ada@example.com"}, editor)
        with pytest.raises(Conflict) as exc_info:
            engine.create("author", {"name": "Eve", "email": "ada@example.com"}, editor)
        assert exc_info.value.field == "email"

    def test_update_keeping_own_value(self, engine, schema, editor):
        author = engine.create("author", {"name": "Ada", "email": "ada@example.com"}, editor)
        updated = engine.update("author", author["id"], {"email": "ada@example.com"}, editor)
        assert updated["email"] == "ada@example.com"

    def test_absent_values_do_not_conflict(self, engine, schema, editor):
        engine.create("author", {"name": "Ada"}, editor)
        engine.create("author", {"name": "Eve"}, editor)
        assert engine.count("author") == 2


# =============================================================================
# List
# =============================================================================


class TestList:
    def test_pagination(self, engine, schema, editor):
        create_articles(engine, editor, 25)
        page = engine.list("article", page=3, limit=10)
        assert len(page.entries) == 5
        assert page.total_count == 25
        assert page.pages == 3
        assert page.to_dict()["pagination"] == {"page": 3, "limit": 10, "total": 25, "pages": 3}
        assert page.to_dict()["totalCount"] == 25

    def test_page_past_end_is_empty(self, engine, schema, editor):
        create_articles(engine, editor, 3)
        page = engine.list("article", page=5, limit=10)
        assert page.entries == []
        assert page.total_count == 3

    def test_newest_first_by_default(self, engine, schema, editor):
        create_articles(engine, editor, 3)
        titles = [e["title"] for e in engine.list("article").entries]
        assert titles == ["Post 02", "Post 01", "Post 00"]

    def test_sort_by_field(self, engine, schema, editor):
        for views in (5, 1, 3):
            engine.create("article", {"title": f"v{views}", "views": views}, editor)
        assert [e["views"] for e in engine.list("article", sort="views").entries] == [1, 3, 5]
        assert [e["views"] for e in engine.list("article", sort="-views").entries] == [5, 3, 1]

    def test_sort_by_unknown_field(self, engine, schema):
        with pytest.raises(ValidationFailed):
            engine.list("article", sort="nope")

    def test_limit_is_capped(self, engine, schema):
        assert engine.list("article", limit=1000).limit == 100

    @pytest.mark.parametrize("kwargs", [{"page": 0}, {"limit": 0}, {"page": -1}, {"limit": True}])
    def test_invalid_paging(self, engine, schema, kwargs):
        with pytest.raises(ValidationFailed):
            engine.list("article", **kwargs)

    def test_search_is_case_insensitive_across_string_fields(self, engine, schema, editor):
        engine.create("article", {"title": "Python tips"}, editor)
        engine.create("article", {"title": "Other", "body": "all about PYTHON"}, editor)
        engine.create("article", {"title": "Unrelated"}, editor)

        page = engine.list("article", search="python")
        assert page.total_count == 2
        assert {e["title"] for e in page.entries} == {"Python tips", "Other"}

    def test_search_escapes_like_wildcards(self, engine, schema, editor):
        engine.create("article", {"title": "100% real"}, editor)
        engine.create("article", {"title": "1000 words"}, editor)
        assert engine.list("article", search="100%").total_count == 1

    def test_search_folds_non_ascii_case(self, engine, schema, editor):
        engine.create("article", {"title": "Élan Vital"}, editor)
        engine.create("article", {"title": "Straße"}, editor)
        assert engine.list("article", search="élan").total_count == 1
        assert engine.list("article", search="VITAL").total_count == 1
        assert engine.list("article", search="STRASSE").total_count == 1

    def test_search_without_string_fields(self, engine, registry, editor):
        registry.define(make_content_type("counter", [{"name": "value", "type": "number"}]))
        engine.create("counter", {"value": 1}, editor)
        page = engine.list("counter", search="1")
        assert page.entries == []
        assert page.total_count == 0

    def test_list_unknown_type(self, engine, schema):
        with pytest.raises(NotFound):
            engine.list("ghost")


# =============================================================================
# Update / delete
# =============================================================================


class TestUpdate:
    def test_merges_payload(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello", "body": "Text"}, editor)
        updated = engine.update("article", entry["id"], {"views": 3}, editor)
        assert updated["title"] == "Hello"
        assert updated["body"] == "Text"
        assert updated["views"] == 3
        assert updated["createdAt"] == entry["createdAt"]
        assert updated["updatedAt"] >= entry["updatedAt"]

    def test_cannot_blank_required_field(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        with pytest.raises(ValidationFailed):
            engine.update("article", entry["id"], {"title": ""}, editor)

    def test_missing_entry(self, engine, schema, editor):
        with pytest.raises(NotFound):
            engine.update("article", MISSING_ID, {"title": "x"}, editor)

    def test_other_editor_forbidden(self, engine, schema, editor, other_editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        with pytest.raises(Forbidden):
            engine.update("article", entry["id"], {"title": "Mine"}, other_editor)

    def test_administrator_may_edit_any_entry(self, engine, schema, editor, admin):
        entry = engine.create("article", {"title": "Hello"}, editor)
        updated = engine.update("article", entry["id"], {"title": "Edited"}, admin)
        assert updated["title"] == "Edited"
        assert updated["createdBy"] == editor.user_id

    def test_state_in_payload_goes_through_workflow(self, engine, schema, editor, settings):
        settings.set_content_approval(True)
        entry = engine.create("article", {"title": "Hello"}, editor)
        updated = engine.update("article", entry["id"], {"state": "published"}, editor)
        assert updated["state"] == "pending_approval"


class TestDelete:
    def test_delete_then_not_found(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        engine.delete("article", entry["id"], editor)
        with pytest.raises(NotFound):
            engine.get_by_id("article", entry["id"])
        with pytest.raises(NotFound):
            engine.delete("article", entry["id"], editor)

    def test_other_editor_forbidden(self, engine, schema, editor, other_editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        with pytest.raises(Forbidden):
            engine.delete("article", entry["id"], other_editor)
        assert engine.count("article") == 1


# =============================================================================
# Workflow
# =============================================================================


class TestTransition:
    def test_publish_without_approval(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        assert engine.transition("article", entry["id"], "published", editor)["state"] == "published"

    def test_publish_with_approval(self, engine, schema, editor, admin, settings):
        settings.set_content_approval(True)
        entry = engine.create("article", {"title": "Hello"}, editor)

        pending = engine.transition("article", entry["id"], "published", editor)
        assert pending["state"] == "pending_approval"

        with pytest.raises(Forbidden):
            engine.transition("article", entry["id"], "published", editor)

        approved = engine.transition("article", entry["id"], "published", admin)
        assert approved["state"] == "published"

    def test_unpublish(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        engine.transition("article", entry["id"], "published", editor)
        assert engine.transition("article", entry["id"], "draft", editor)["state"] == "draft"

    def test_invalid_state(self, engine, schema, editor):
        entry = engine.create("article", {"title": "Hello"}, editor)
        with pytest.raises(ValidationFailed):
            engine.transition("article", entry["id"], "archived", editor)

    def test_same_state_is_noop(self, engine, schema, editor, events):
        entry = engine.create("article", {"title": "Hello"}, editor)
        result = engine.transition("article", entry["id"], "draft", editor)
        assert result == entry
        assert [e.action for e in events] == [CREATE]


# =============================================================================
# Audit
# =============================================================================


class TestAudit:
    def test_events_for_every_mutation(self, engine, schema, editor, events):
        entry = engine.create("article", {"title": "Hello"}, editor)
        engine.update("article", entry["id"], {"title": "Edited"}, editor)
        engine.transition("article", entry["id"], "published", editor)
        engine.delete("article", entry["id"], editor)

        assert [e.action for e in events] == [CREATE, UPDATE, STATE_CHANGE, DELETE]
        assert all(e.entity_type == "article" for e in events)
        assert all(e.entity_id == entry["id"] for e in events)
        assert events[1].details == {"changes": {"title": "Edited"}}
        assert events[2].details == {"previousState": "draft", "newState": "published"}

    def test_update_records_changed_values(self, engine, schema, editor, events):
        author = engine.create("author", {"name": "Ada"}, editor)
        entry = engine.create("article", {"title": "Hello", "views": 1, "author": author["id"]}, editor)

        engine.update("article", entry["id"], {"title": "Hello", "views": "2", "author": ""}, editor)

        assert events[-1].action == UPDATE
        assert events[-1].details == {"changes": {"views": 2, "author": None}}

    def test_failed_operation_emits_nothing(self, engine, schema, editor, events):
        with pytest.raises(ValidationFailed):
            engine.create("article", {}, editor)
        assert events == []

    def test_failing_sink_does_not_fail_operation(self, engine, schema, editor, caplog):
        def broken(event):
            raise RuntimeError("sink down")

        AuditSinkRegistry.register("broken", broken)
        with caplog.at_level(logging.ERROR, logger="corebase.audit.service"):
            entry = engine.create("article", {"title": "Hello"}, editor)

        assert engine.get_by_id("article", entry["id"])["title"] == "Hello"
        assert "sink down" in caplog.text
