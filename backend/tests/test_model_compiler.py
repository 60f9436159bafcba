"""Tests for the model synthesizer and the compiled model registry."""

import threading

import pytest

from corebase.errors import NotFound
from corebase.models.compiler import SYSTEM_FIELDS, compile_model
from corebase.models.registry import ModelRegistry

from conftest import make_content_type


ARTICLE_FIELDS = [
    {"name": "title", "type": "text", "required": True},
    {"name": "views", "type": "number"},
    {"name": "category", "type": "enum", "options": ["news", "opinion"], "defaultValue": "news"},
    {"name": "author", "type": "relation", "relationTo": "author"},
    {"name": "tags", "type": "relation", "relationTo": "tag", "relationMany": True},
    {"name": "cover", "type": "media"},
    {"name": "gallery", "type": "media", "multiple": True},
]


# =============================================================================
# Compiler
# =============================================================================


class TestCompileModel:
    def test_fields_follow_definition_order(self):
        model = compile_model(make_content_type("article", ARTICLE_FIELDS))
        assert model.api_id == "article"
        assert model.field_names == (
            "title", "views", "category", "author", "tags", "cover", "gallery",
        )

    def test_column_names_start_with_system_fields(self):
        model = compile_model(make_content_type("article", ARTICLE_FIELDS))
        assert model.column_names[: len(SYSTEM_FIELDS)] == SYSTEM_FIELDS

    def test_field_attributes(self):
        model = compile_model(make_content_type("article", ARTICLE_FIELDS))
        title = model.field("title")
        assert title.required
        assert title.searchable
        assert model.field("category").default == "news"
        assert model.field("category").options == ("news", "opinion")
        assert model.field("views").storage_type == "NUMERIC"

    def test_reference_cardinality(self):
        model = compile_model(make_content_type("article", ARTICLE_FIELDS))
        assert model.field("author").many is False
        assert model.field("author").relation_to == "author"
        assert model.field("tags").many is True
        assert model.field("cover").many is False
        assert model.field("gallery").many is True
        assert model.field("gallery").relation_to is None
        assert [f.name for f in model.reference_fields] == ["author", "tags", "cover", "gallery"]

    def test_deterministic(self):
        content_type = make_content_type("article", ARTICLE_FIELDS)
        assert compile_model(content_type) == compile_model(content_type)

    def test_unknown_field(self):
        model = compile_model(make_content_type("article", ARTICLE_FIELDS))
        assert model.field("missing") is None


# =============================================================================
# Registry
# =============================================================================


class TestModelRegistry:
    def test_register_and_require(self):
        models = ModelRegistry()
        model = compile_model(make_content_type("article", ARTICLE_FIELDS))
        models.register(model)
        assert models.require("article") is model
        assert models.list_ids() == ["article"]

    def test_require_unknown_raises_not_found(self):
        with pytest.raises(NotFound, match="ghost"):
            ModelRegistry().require("ghost")

    def test_register_replaces(self):
        models = ModelRegistry()
        models.register(compile_model(make_content_type("page", [{"name": "a", "type": "text"}])))
        models.register(compile_model(make_content_type("page", [{"name": "b", "type": "text"}])))
        assert models.require("page").field_names == ("b",)

    def test_unregister(self):
        models = ModelRegistry()
        models.register(compile_model(make_content_type("page", [{"name": "a", "type": "text"}])))
        assert models.unregister("page") is True
        assert models.unregister("page") is False
        assert models.get("page") is None

    def test_snapshot_is_isolated_from_later_writes(self):
        models = ModelRegistry()
        models.register(compile_model(make_content_type("page", [{"name": "a", "type": "text"}])))
        snapshot = models.snapshot()
        models.register(compile_model(make_content_type("post", [{"name": "a", "type": "text"}])))
        assert list(snapshot) == ["page"]
        with pytest.raises(TypeError):
            snapshot["x"] = None  # type: ignore[index]

    def test_concurrent_registration(self):
        models = ModelRegistry()

        def register(i: int) -> None:
            models.register(compile_model(
                make_content_type(f"type_{i}", [{"name": "a", "type": "text"}])
            ))

        threads = [threading.Thread(target=register, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(models.list_ids()) == 20
