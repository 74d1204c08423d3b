"""Tests for schema parsing, lookup, defaults, validation, and inference."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from heimdall.domain.errors import (
    ConfigIOError,
    ConfigParseError,
    PathNotFoundError,
    SchemaValidationError,
)
from heimdall.domain.schema import (
    DRAFT_07,
    Property,
    Schema,
    infer_schema,
    matches_type,
    validate_value,
)

SAMPLE: dict[str, Any] = {
    "$schema": DRAFT_07,
    "title": "Sample",
    "type": "object",
    "properties": {
        "theme": {"type": "string", "enum": ["dark", "light"], "default": "dark"},
        "bar": {
            "type": "object",
            "properties": {
                "height": {"type": "integer", "minimum": 20, "maximum": 100, "default": 30},
                "label": {"type": "string", "minLength": 1, "maxLength": 8},
                "modules": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"name": {"type": "string"}},
                        "required": ["name"],
                    },
                },
            },
        },
        "accent": {"type": "string", "pattern": "^#[0-9a-f]{6}$"},
        "ratio": {"type": "number", "minimum": 0, "maximum": 1},
        "extras": {"type": "object", "additionalProperties": {"type": "boolean"}},
        "strict": {
            "type": "object",
            "properties": {"on": {"type": "boolean"}},
            "additionalProperties": False,
        },
        "maybe": {"type": ["string", "null"]},
    },
}


@pytest.fixture
def schema() -> Schema:
    return Schema.from_json(json.dumps(SAMPLE))


class TestParsing:
    def test_from_json_keeps_original_bytes(self) -> None:
        raw = json.dumps(SAMPLE).encode()
        assert Schema.from_json(raw).to_json() == raw

    def test_reserialization_uses_json_schema_keywords(self) -> None:
        schema = Schema.from_document(SAMPLE)
        document = json.loads(schema.to_json())
        assert document["$schema"] == DRAFT_07
        assert document["properties"]["bar"]["properties"]["label"]["minLength"] == 1

    def test_invalid_json_is_a_parse_error(self) -> None:
        with pytest.raises(ConfigParseError, match="failed to parse schema"):
            Schema.from_json("{not json")

    def test_non_object_root_type_is_rejected(self) -> None:
        with pytest.raises(ConfigParseError):
            Schema.from_document({"type": "array"})

    def test_missing_file_is_an_io_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigIOError):
            Schema.from_file(tmp_path / "absent.json")


class TestLookup:
    def test_get_nested_property(self, schema: Schema) -> None:
        assert schema.get_property("bar.height").type == "integer"

    def test_missing_property_records_resolved_prefix(self, schema: Schema) -> None:
        with pytest.raises(PathNotFoundError, match="property 'bar.width' not found") as exc:
            schema.get_property("bar.width")
        assert exc.value.resolved == "bar"

    def test_descending_into_scalar_property(self, schema: Schema) -> None:
        with pytest.raises(PathNotFoundError, match="property 'theme' is not an object"):
            schema.get_property("theme.color")

    def test_additional_properties_schema_resolves_any_key(self, schema: Schema) -> None:
        assert schema.get_property("extras.anything").type == "boolean"

    def test_has_property(self, schema: Schema) -> None:
        assert schema.has_property("bar.modules")
        assert not schema.has_property("nope")

    def test_defaults_are_synthesized_from_children(self, schema: Schema) -> None:
        assert schema.defaults() == {"theme": "dark", "bar": {"height": 30}}


class TestValidateValue:
    def test_enum_violation(self, schema: Schema) -> None:
        with pytest.raises(SchemaValidationError, match="must be one of") as exc:
            schema.validate_value("theme", "blue")
        assert str(exc.value) == "value at 'theme' must be one of [dark, light], got blue"
        assert exc.value.path == "theme"

    def test_type_mismatch(self, schema: Schema) -> None:
        with pytest.raises(SchemaValidationError, match="must be of type integer, got string"):
            schema.validate_value("bar.height", "tall")

    def test_integer_rejects_fractions_and_booleans(self, schema: Schema) -> None:
        schema.validate_value("bar.height", 40.0)
        with pytest.raises(SchemaValidationError):
            schema.validate_value("bar.height", 40.5)
        with pytest.raises(SchemaValidationError):
            schema.validate_value("bar.height", True)

    def test_numeric_bounds(self, schema: Schema) -> None:
        with pytest.raises(SchemaValidationError, match=r"must be >= 20, got 10"):
            schema.validate_value("bar.height", 10)
        with pytest.raises(SchemaValidationError, match=r"must be <= 1, got 1.5"):
            schema.validate_value("ratio", 1.5)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_numbers_are_rejected(self, schema: Schema, value: float) -> None:
        with pytest.raises(SchemaValidationError, match="'ratio' must be finite"):
            schema.validate_value("ratio", value)
        with pytest.raises(SchemaValidationError, match="must be finite"):
            validate_value(value, Property(type="number"), "unbounded")

    def test_string_length(self, schema: Schema) -> None:
        with pytest.raises(SchemaValidationError, match="at least 1 characters"):
            schema.validate_value("bar.label", "")
        with pytest.raises(SchemaValidationError, match="at most 8 characters"):
            schema.validate_value("bar.label", "much too long")

    def test_pattern(self, schema: Schema) -> None:
        schema.validate_value("accent", "#a0b1c2")
        with pytest.raises(SchemaValidationError, match="does not match pattern"):
            schema.validate_value("accent", "red")

    def test_unanchored_pattern_matches_anywhere(self) -> None:
        prop = Property(type="string", pattern="[0-9]+")
        validate_value("abc123", prop, "p")

    def test_null_always_passes(self, schema: Schema) -> None:
        schema.validate_value("theme", None)
        schema.validate_value("bar.height", None)

    def test_union_types(self, schema: Schema) -> None:
        schema.validate_value("maybe", "x")
        with pytest.raises(SchemaValidationError, match=r"one of types \[string, null\]"):
            schema.validate_value("maybe", 3)

    def test_array_items_report_index(self, schema: Schema) -> None:
        with pytest.raises(SchemaValidationError, match=r"bar.modules\[1\].name"):
            schema.validate_value("bar.modules", [{"name": "clock"}, {"enabled": True}])

    def test_unknown_path_is_path_not_found(self, schema: Schema) -> None:
        with pytest.raises(PathNotFoundError):
            schema.validate_value("nope", 1)


class TestValidateTree:
    def test_valid_tree(self, schema: Schema) -> None:
        schema.validate({"theme": "light", "bar": {"height": 50, "modules": [{"name": "x"}]}})

    def test_unknown_top_level_keys_are_accepted(self, schema: Schema) -> None:
        schema.validate({"theme": "dark", "unrelated": {"anything": [1, 2]}})

    def test_additional_properties_false_rejects_unknown_keys(self, schema: Schema) -> None:
        with pytest.raises(SchemaValidationError, match="'strict.off' is not allowed"):
            schema.validate({"strict": {"off": True}})

    def test_additional_properties_schema_validates_unknown_keys(self, schema: Schema) -> None:
        with pytest.raises(SchemaValidationError, match="extras.flag"):
            schema.validate({"extras": {"flag": "yes"}})

    def test_required_root_fields(self) -> None:
        schema = Schema.from_document({"properties": {"v": {"type": "string"}}, "required": ["v"]})
        with pytest.raises(SchemaValidationError, match="required field 'v' is missing"):
            schema.validate({})


class TestInference:
    def test_infer_types_and_defaults(self) -> None:
        schema = infer_schema(
            {"$schema": "x", "size": 12, "ratio": 0.5, "name": "bar", "on": True, "tags": ["a"]},
            title="Inferred",
            skip=frozenset({"$schema"}),
        )
        assert schema.title == "Inferred"
        assert "$schema" not in schema.properties
        assert schema.get_property("size").type == "integer"
        assert schema.get_property("ratio").type == "number"
        assert schema.get_property("tags").items is not None
        assert schema.defaults() == {"size": 12, "ratio": 0.5, "name": "bar", "on": True}

    def test_null_infers_nullable_string(self) -> None:
        schema = infer_schema({"unset": None})
        assert schema.get_property("unset").type == ["null", "string"]

    def test_matches_type(self) -> None:
        assert matches_type(1, "number")
        assert matches_type(1, "integer")
        assert not matches_type(True, "number")
        assert not matches_type("x", "unknown-type")
