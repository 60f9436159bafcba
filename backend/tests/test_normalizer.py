"""Tests for reference normalization of relation and media values."""

import pytest

from corebase.content.normalizer import (
    cleared_references,
    is_valid_id,
    normalize_references,
)
from corebase.models.compiler import compile_model

from conftest import make_content_type

VALID = "0123456789abcdef0123456789abcdef"
OTHER = "fedcba9876543210fedcba9876543210"


@pytest.fixture
def model():
    return compile_model(make_content_type("article", [
        {"name": "title", "type": "text"},
        {"name": "author", "type": "relation", "relationTo": "author"},
        {"name": "tags", "type": "relation", "relationTo": "tag", "relationMany": True},
        {"name": "cover", "type": "media"},
        {"name": "gallery", "type": "media", "multiple": True},
    ]))


class TestIsValidId:
    def test_generated_ids(self):
        assert is_valid_id(VALID)

    @pytest.mark.parametrize("value", ["", "abc", VALID.upper(), VALID[:-1] + "g", None, 42])
    def test_rejects(self, value):
        assert not is_valid_id(value)


class TestNormalizeReferences:
    @pytest.mark.parametrize("blank", [None, "", "null", "undefined", " null ", []])
    def test_blank_values_drop_the_field(self, model, blank):
        result = normalize_references({"title": "x", "author": blank}, model)
        assert result == {"title": "x"}

    def test_valid_scalar_kept(self, model):
        assert normalize_references({"cover": VALID}, model) == {"cover": VALID}

    def test_malformed_scalar_dropped(self, model):
        assert normalize_references({"author": "not-an-id"}, model) == {}

    def test_list_loses_blank_slots(self, model):
        payload = {"gallery": ["", VALID, "null", "undefined", OTHER]}
        assert normalize_references(payload, model) == {"gallery": [VALID, OTHER]}

    def test_list_loses_malformed_ids_of_id_length(self, model):
        payload = {"tags": [VALID, "Z" * 32]}
        assert normalize_references(payload, model) == {"tags": [VALID]}

    def test_list_of_only_blanks_drops_the_field(self, model):
        assert normalize_references({"tags": ["", "null"]}, model) == {}

    def test_non_reference_fields_untouched(self, model):
        payload = {"title": "null"}
        assert normalize_references(payload, model) == {"title": "null"}

    def test_does_not_mutate_input(self, model):
        payload = {"author": ""}
        normalize_references(payload, model)
        assert payload == {"author": ""}

    def test_absent_fields_stay_absent(self, model):
        assert normalize_references({}, model) == {}


class TestClearedReferences:
    def test_lists_explicitly_blanked_fields(self, model):
        payload = {"author": "", "tags": [], "cover": VALID, "title": ""}
        assert cleared_references(payload, model) == ["author", "tags"]

    def test_absent_fields_are_not_cleared(self, model):
        assert cleared_references({"title": "x"}, model) == []
