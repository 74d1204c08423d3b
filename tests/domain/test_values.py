"""Tests for value kinds, deep merge, and dot-path addressing."""

from __future__ import annotations

import pytest

from heimdall.domain.errors import PathConflictError, PathNotFoundError
from heimdall.domain.values import (
    ValueKind,
    collect_paths,
    deep_merge,
    diff_paths,
    find_new_fields,
    get_path,
    has_path,
    is_integer,
    kind_of,
    leaf_paths,
    set_path,
    split_path,
    values_equal,
)


class TestKindOf:
    @pytest.mark.parametrize(
        ("value", "kind"),
        [
            (None, ValueKind.NULL),
            (True, ValueKind.BOOLEAN),
            (0, ValueKind.NUMBER),
            (2.5, ValueKind.NUMBER),
            ("x", ValueKind.STRING),
            ([1], ValueKind.ARRAY),
            ({"a": 1}, ValueKind.OBJECT),
        ],
    )
    def test_classifies_json_values(self, value: object, kind: ValueKind) -> None:
        assert kind_of(value) is kind

    def test_rejects_non_json_values(self) -> None:
        with pytest.raises(TypeError, match="unsupported configuration value"):
            kind_of(object())

    def test_bool_is_not_an_integer(self) -> None:
        assert is_integer(3)
        assert is_integer(3.0)
        assert not is_integer(3.5)
        assert not is_integer(True)


class TestValuesEqual:
    def test_numbers_compare_by_magnitude(self) -> None:
        assert values_equal(1, 1.0)

    def test_bool_never_equals_number(self) -> None:
        assert not values_equal(True, 1)

    def test_objects_ignore_key_order(self) -> None:
        assert values_equal({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1})

    def test_arrays_are_ordered(self) -> None:
        assert not values_equal([1, 2], [2, 1])


class TestDeepMerge:
    def test_nested_objects_merge_key_by_key(self) -> None:
        base = {"scheme": {"default": "rosepine", "auto_mode": True}, "version": "0.2.0"}
        merged = deep_merge(base, {"scheme": {"default": "nord"}})
        assert merged == {"scheme": {"default": "nord", "auto_mode": True}, "version": "0.2.0"}

    def test_arrays_are_replaced_wholesale(self) -> None:
        merged = deep_merge({"a": [1, 2, 3]}, {"a": [9]})
        assert merged["a"] == [9]

    def test_inputs_are_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}
        merged = deep_merge(base, override)
        merged["a"]["b"] = 99
        assert base == {"a": {"b": 1}}
        assert override == {"a": {"c": 2}}

    def test_scalar_override_replaces_object(self) -> None:
        assert deep_merge({"a": {"b": 1}}, {"a": None}) == {"a": None}


class TestDotPaths:
    def test_get_nested_value(self) -> None:
        assert get_path({"a": {"b": {"c": 3}}}, "a.b.c") == 3

    def test_missing_path_message(self) -> None:
        with pytest.raises(PathNotFoundError, match="path not found: nonexistent.path"):
            get_path({"a": 1}, "nonexistent.path")

    def test_cannot_descend_into_scalar(self) -> None:
        with pytest.raises(PathNotFoundError):
            get_path({"a": 1}, "a.b")

    @pytest.mark.parametrize("path", ["", "a..b", ".a", "a."])
    def test_empty_segments_are_not_addressable(self, path: str) -> None:
        with pytest.raises(PathNotFoundError):
            split_path(path)

    def test_has_path(self) -> None:
        tree = {"a": {"b": None}}
        assert has_path(tree, "a.b")
        assert not has_path(tree, "a.c")

    def test_set_creates_intermediate_objects(self) -> None:
        tree: dict[str, object] = {}
        set_path(tree, "bar.modules.clock", {"enabled": True})
        assert tree == {"bar": {"modules": {"clock": {"enabled": True}}}}

    def test_set_through_scalar_conflicts(self) -> None:
        tree = {"bar": {"height": 30}}
        with pytest.raises(PathConflictError, match="'bar.height' is not an object"):
            set_path(tree, "bar.height.px", 3)
        assert tree == {"bar": {"height": 30}}


class TestTreeInspection:
    def test_collect_paths_includes_intermediate_keys(self) -> None:
        assert collect_paths({"a": {"b": 1, "c": {"d": 2}}}) == {"a", "a.b", "a.c", "a.c.d"}

    def test_leaf_paths_treat_empty_objects_as_leaves(self) -> None:
        assert leaf_paths({"a": {}, "b": {"c": 1}}) == {"a": {}, "b.c": 1}

    def test_diff_paths_reports_changed_and_added_leaves(self) -> None:
        base = {"a": {"b": 1, "c": 2}}
        other = {"a": {"b": 1, "c": 3, "d": 4}}
        assert diff_paths(base, other) == ["a.c", "a.d"]

    def test_find_new_fields_reports_topmost_additions(self) -> None:
        old = {"theme": {"enableGtk": False}}
        new = {"theme": {"enableGtk": False, "paths": {"gtk3": "x"}}, "version": "0.2.0"}
        assert find_new_fields(old, new) == ["theme.paths", "version"]
