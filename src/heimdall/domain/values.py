"""Generic value trees and dot-path addressing.

A configuration value is one of six kinds: null, boolean, number, string,
array, or object. In Python these are ``None``, ``bool``, ``int``/``float``,
``str``, ``list`` and ``dict`` with string keys, exactly what :mod:`json`
produces. Helpers here dispatch on :class:`ValueKind` so ``True`` is never
mistaken for the number ``1``.

INVARIANT: Helpers never mutate their inputs unless the name says so
(``set_path`` writes into the tree it is given).
"""

from __future__ import annotations

import copy
from enum import StrEnum
from typing import Any

from heimdall.domain.errors import PathConflictError, PathNotFoundError


class ValueKind(StrEnum):
    """The six kinds of configuration value, named as in JSON Schema."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def kind_of(value: Any) -> ValueKind:
    """Classify *value*; raises ``TypeError`` for non-JSON values."""
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, so it must be checked first.
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    msg = f"unsupported configuration value of type {type(value).__name__}"
    raise TypeError(msg)


def is_integer(value: Any) -> bool:
    """True for numbers with no fractional part (``3`` and ``3.0``, not ``True``)."""
    if kind_of(value) is not ValueKind.NUMBER:
        return False
    return isinstance(value, int) or float(value).is_integer()


def values_equal(left: Any, right: Any) -> bool:
    """Deep equality that respects value kinds.

    Numbers compare by magnitude (``1 == 1.0``), booleans never equal
    numbers, and objects compare independently of key order.
    """
    kind = kind_of(left)
    if kind is not kind_of(right):
        return False
    if kind is ValueKind.ARRAY:
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right, strict=True)
        )
    if kind is ValueKind.OBJECT:
        return left.keys() == right.keys() and all(values_equal(left[k], right[k]) for k in left)
    return bool(left == right)


def deep_copy(value: Any) -> Any:
    """Return an independent copy of a value tree."""
    return copy.deepcopy(value)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge *override* onto *base*, returning a new tree.

    Objects present on both sides merge key by key; any other value in
    *override* replaces the base value wholesale (arrays are not concatenated).
    """
    merged = deep_copy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deep_copy(value)
    return merged


# ---------------------------------------------------------------------------
# Dot-path addressing
# ---------------------------------------------------------------------------


def split_path(path: str) -> list[str]:
    """Split ``"a.b.c"`` into segments; empty segments are not addressable."""
    parts = path.split(".")
    if not path or any(not part for part in parts):
        raise PathNotFoundError(path)
    return parts


def get_path(tree: dict[str, Any], path: str) -> Any:
    """Return the value at *path*; raises :class:`PathNotFoundError`."""
    node: Any = tree
    for part in split_path(path):
        if not isinstance(node, dict) or part not in node:
            raise PathNotFoundError(path)
        node = node[part]
    return node


def has_path(tree: dict[str, Any], path: str) -> bool:
    try:
        get_path(tree, path)
    except PathNotFoundError:
        return False
    return True


def set_path(tree: dict[str, Any], path: str, value: Any) -> None:
    """Write *value* at *path*, creating missing intermediate objects.

    Raises:
        PathConflictError: An intermediate node exists but is not an object.
    """
    parts = split_path(path)
    node = tree
    for i, part in enumerate(parts[:-1]):
        child = node.get(part)
        if child is None and part not in node:
            child = {}
            node[part] = child
        elif not isinstance(child, dict):
            raise PathConflictError(".".join(parts[: i + 1]))
        node = child
    node[parts[-1]] = value


# ---------------------------------------------------------------------------
# Tree inspection
# ---------------------------------------------------------------------------


def collect_paths(tree: dict[str, Any], prefix: str = "") -> set[str]:
    """Every dot-path present in *tree*, nested object keys included."""
    paths: set[str] = set()
    for key, value in tree.items():
        full = f"{prefix}.{key}" if prefix else key
        paths.add(full)
        if isinstance(value, dict):
            paths |= collect_paths(value, full)
    return paths


def leaf_paths(tree: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Map each leaf dot-path to its value (empty objects count as leaves)."""
    leaves: dict[str, Any] = {}
    for key, value in tree.items():
        full = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict) and value:
            leaves.update(leaf_paths(value, full))
        else:
            leaves[full] = value
    return leaves


def diff_paths(base: dict[str, Any], other: dict[str, Any]) -> list[str]:
    """Sorted leaf paths of *other* whose value differs from (or is absent in) *base*."""
    base_leaves = leaf_paths(base)
    changed = [
        path
        for path, value in leaf_paths(other).items()
        if path not in base_leaves or not values_equal(base_leaves[path], value)
    ]
    return sorted(changed)


def find_new_fields(old: dict[str, Any], new: dict[str, Any], prefix: str = "") -> list[str]:
    """Top-most dot-paths present in *new* but missing from *old*."""
    found: list[str] = []
    for key, value in new.items():
        full = f"{prefix}.{key}" if prefix else key
        if key not in old:
            found.append(full)
        elif isinstance(value, dict) and isinstance(old[key], dict):
            found.extend(find_new_fields(old[key], value, full))
    return sorted(found)
