"""JSON-Schema-like documents and the recursive value validator.

A :class:`Schema` describes one domain's shape: a root object whose
``properties`` map keys to nested :class:`Property` nodes. Validation walks a
value tree alongside the schema, checking type, enum, string and numeric
bounds, then recursing into arrays (``path[i]``) and objects (``path.key``).

INVARIANT: ``null`` always passes; it models an intentionally unset value.
INVARIANT: NaN and infinities never validate as numbers.
INVARIANT: An object key with no matching property is accepted unless the
enclosing node sets ``additionalProperties`` to ``false``. When
``additionalProperties`` is itself a schema, unknown keys are validated
against it.

Patterns use :func:`re.search` semantics: a pattern matches anywhere in the
string unless it is anchored with ``^``/``$``.
"""

from __future__ import annotations

import json
import math
import re
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, PrivateAttr, ValidationError, field_validator

from heimdall.domain.errors import (
    ConfigIOError,
    ConfigParseError,
    PathNotFoundError,
    SchemaValidationError,
)
from heimdall.domain.values import ValueKind, deep_copy, is_integer, kind_of, values_equal

DRAFT_07 = "http://json-schema.org/draft-07/schema#"

# JSON Schema type name -> value kinds that satisfy it ("integer" is narrowed further).
_TYPE_KINDS: dict[str, ValueKind] = {
    "null": ValueKind.NULL,
    "boolean": ValueKind.BOOLEAN,
    "number": ValueKind.NUMBER,
    "integer": ValueKind.NUMBER,
    "string": ValueKind.STRING,
    "array": ValueKind.ARRAY,
    "object": ValueKind.OBJECT,
}


class Property(BaseModel):
    """One schema node."""

    model_config = {"frozen": True, "populate_by_name": True}

    type: str | list[str] | None = None
    description: str = ""
    default: Any = None
    enum: list[Any] | None = None
    properties: dict[str, Property] | None = None
    items: Property | None = None
    minimum: float | None = None
    maximum: float | None = None
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    pattern: str | None = None
    required: list[str] = Field(default_factory=list)
    additional_properties: bool | Property | None = Field(
        default=None, alias="additionalProperties"
    )
    format: str | None = None
    ref: str | None = Field(default=None, alias="$ref")

    @property
    def type_name(self) -> str:
        """Primary type name (first member of a union), or ``"unknown"``."""
        if isinstance(self.type, str):
            return self.type
        if self.type:
            return self.type[0]
        return "unknown"

    def child(self, key: str) -> Property | None:
        """Resolve the schema for object key *key*, if any."""
        if self.properties and key in self.properties:
            return self.properties[key]
        if isinstance(self.additional_properties, Property):
            return self.additional_properties
        return None

    def defaults(self) -> Any:
        """Default value for this node, synthesized from children when absent."""
        if self.default is not None:
            return deep_copy(self.default)
        if self.properties:
            nested = _collect_defaults(self.properties)
            return nested or None
        return None


class Schema(BaseModel):
    """A parsed schema document for one domain."""

    model_config = {"frozen": True, "populate_by_name": True}

    schema_uri: str = Field(default="", alias="$schema")
    id: str = Field(default="", alias="$id")
    title: str = ""
    description: str = ""
    type: str | None = None
    properties: dict[str, Property] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: bool | Property | None = Field(
        default=None, alias="additionalProperties"
    )
    version: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict, alias="x-heimdall-metadata")

    _raw: bytes | None = PrivateAttr(default=None)

    @field_validator("type")
    @classmethod
    def _root_is_object(cls, value: str | None) -> str | None:
        if value is not None and value != "object":
            msg = "root schema must be of type 'object'"
            raise ValueError(msg)
        return value

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """Build a schema from an already-parsed document."""
        try:
            return cls.model_validate(document)
        except ValidationError as exc:
            msg = f"failed to parse schema: {exc}"
            raise ConfigParseError(msg) from exc

    @classmethod
    def from_json(cls, data: bytes | str) -> Self:
        """Parse a raw schema document, remembering the original bytes."""
        raw = data.encode("utf-8") if isinstance(data, str) else data
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"failed to parse schema: {exc}"
            raise ConfigParseError(msg) from exc
        if not isinstance(document, dict):
            msg = "failed to parse schema: document must be a JSON object"
            raise ConfigParseError(msg)
        schema = cls.from_document(document)
        schema._raw = raw
        return schema

    @classmethod
    def from_file(cls, path: Path) -> Self:
        try:
            raw = path.read_bytes()
        except OSError as exc:
            msg = f"failed to read schema file: {exc}"
            raise ConfigIOError(msg) from exc
        return cls.from_json(raw)

    def to_json(self) -> bytes:
        """Original document bytes when available, else a re-serialization."""
        if self._raw is not None:
            return self._raw
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2).encode("utf-8")

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_property(self, path: str) -> Property:
        """Resolve the property at dot-path *path*.

        Raises:
            PathNotFoundError: With the longest resolved prefix recorded in
                ``resolved``.
        """
        parts = path.split(".")
        node = self._root_property()
        for i, part in enumerate(parts):
            attempted = ".".join(parts[: i + 1])
            resolved = ".".join(parts[:i])
            is_object = bool(node.properties) or isinstance(node.additional_properties, Property)
            if i > 0 and not is_object:
                raise PathNotFoundError(
                    path, f"property '{resolved}' is not an object", resolved=resolved
                )
            child = node.child(part)
            if child is None:
                raise PathNotFoundError(
                    path, f"property '{attempted}' not found in schema", resolved=resolved
                )
            node = child
        return node

    def has_property(self, path: str) -> bool:
        try:
            self.get_property(path)
        except PathNotFoundError:
            return False
        return True

    def defaults(self) -> dict[str, Any]:
        """Default value tree synthesized from every property's ``default``."""
        return _collect_defaults(self.properties)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, config: dict[str, Any]) -> None:  # type: ignore[override]
        """Validate a whole tree; raises :class:`SchemaValidationError`."""
        for key in self.required:
            if key not in config:
                raise SchemaValidationError(f"required field '{key}' is missing", path=key)
        for key, value in config.items():
            prop = self.properties.get(key)
            if prop is None:
                if isinstance(self.additional_properties, Property):
                    prop = self.additional_properties
                elif self.additional_properties is False:
                    raise SchemaValidationError(
                        f"additional property '{key}' is not allowed", path=key
                    )
                else:
                    continue
            validate_value(value, prop, key)

    def validate_value(self, path: str, value: Any) -> None:
        """Validate *value* as if it were written at *path*."""
        validate_value(value, self.get_property(path), path)

    def _root_property(self) -> Property:
        return Property(
            type="object",
            properties=self.properties,
            additional_properties=self.additional_properties,
        )


# ---------------------------------------------------------------------------
# Recursive validator
# ---------------------------------------------------------------------------


def validate_value(value: Any, prop: Property, path: str) -> None:
    """Check *value* against *prop*; the first violation is raised."""
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return

    if prop.type is not None:
        _check_type(value, prop.type, path)

    if prop.enum is not None and not any(values_equal(value, member) for member in prop.enum):
        choices = ", ".join(_display(member) for member in prop.enum)
        raise SchemaValidationError(
            f"value at '{path}' must be one of [{choices}], got {_display(value)}", path=path
        )

    if kind is ValueKind.STRING:
        _check_string(value, prop, path)
    elif kind is ValueKind.NUMBER:
        _check_number(value, prop, path)
    elif kind is ValueKind.ARRAY:
        if prop.items is not None:
            for index, item in enumerate(value):
                validate_value(item, prop.items, f"{path}[{index}]")
    elif kind is ValueKind.OBJECT:
        _check_object(value, prop, path)


def matches_type(value: Any, type_name: str) -> bool:
    """True when *value* satisfies the JSON Schema type *type_name*."""
    expected = _TYPE_KINDS.get(type_name)
    if expected is None or kind_of(value) is not expected:
        return False
    if type_name == "integer":
        return is_integer(value)
    return True


def _check_type(value: Any, expected: str | list[str], path: str) -> None:
    actual = kind_of(value).value
    if isinstance(expected, str):
        if not matches_type(value, expected):
            raise SchemaValidationError(
                f"value at '{path}' must be of type {expected}, got {actual}", path=path
            )
        return
    if not any(matches_type(value, name) for name in expected):
        names = ", ".join(expected)
        raise SchemaValidationError(
            f"value at '{path}' must be one of types [{names}], got {actual}", path=path
        )


def _check_string(value: str, prop: Property, path: str) -> None:
    if prop.min_length is not None and len(value) < prop.min_length:
        raise SchemaValidationError(
            f"string at '{path}' must have at least {prop.min_length} characters", path=path
        )
    if prop.max_length is not None and len(value) > prop.max_length:
        raise SchemaValidationError(
            f"string at '{path}' must have at most {prop.max_length} characters", path=path
        )
    if prop.pattern:
        try:
            matched = re.search(prop.pattern, value) is not None
        except re.error as exc:
            raise SchemaValidationError(f"invalid pattern for '{path}': {exc}", path=path) from exc
        if not matched:
            raise SchemaValidationError(
                f"string at '{path}' does not match pattern {prop.pattern}", path=path
            )


def _check_number(value: float, prop: Property, path: str) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise SchemaValidationError(
            f"number at '{path}' must be finite, got {value!r}", path=path
        )
    if prop.minimum is not None and value < prop.minimum:
        raise SchemaValidationError(
            f"number at '{path}' must be >= {prop.minimum:g}, got {_display(value)}", path=path
        )
    if prop.maximum is not None and value > prop.maximum:
        raise SchemaValidationError(
            f"number at '{path}' must be <= {prop.maximum:g}, got {_display(value)}", path=path
        )


def _check_object(value: dict[str, Any], prop: Property, path: str) -> None:
    for key in prop.required:
        if key not in value:
            raise SchemaValidationError(
                f"required field '{path}.{key}' is missing", path=f"{path}.{key}"
            )
    for key, item in value.items():
        child_path = f"{path}.{key}"
        child = prop.child(key)
        if child is not None:
            validate_value(item, child, child_path)
        elif prop.additional_properties is False:
            raise SchemaValidationError(
                f"additional property '{child_path}' is not allowed", path=child_path
            )


def _display(value: Any) -> str:
    if kind_of(value) in (ValueKind.STRING, ValueKind.NUMBER):
        return str(value)
    return json.dumps(value)


def _collect_defaults(properties: dict[str, Property]) -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for key, prop in properties.items():
        value = prop.defaults()
        if value is not None:
            defaults[key] = value
    return defaults


# ---------------------------------------------------------------------------
# Schema inference
# ---------------------------------------------------------------------------


def infer_property(value: Any) -> Property:
    """Synthesize a property from an example value.

    Scalars become typed nodes carrying the value as their default; arrays
    take their item schema from the first element; ``null`` allows
    ``null`` or a string.
    """
    kind = kind_of(value)
    if kind is ValueKind.BOOLEAN:
        return Property(type="boolean", default=value)
    if kind is ValueKind.NUMBER:
        return Property(type="integer" if is_integer(value) else "number", default=value)
    if kind is ValueKind.STRING:
        return Property(type="string", default=value)
    if kind is ValueKind.ARRAY:
        items = infer_property(value[0]) if value else None
        return Property(type="array", items=items)
    if kind is ValueKind.OBJECT:
        return Property(
            type="object",
            properties={key: infer_property(item) for key, item in value.items()},
        )
    return Property(type=["null", "string"])


def infer_schema(
    document: dict[str, Any],
    *,
    title: str = "",
    skip: frozenset[str] = frozenset(),
) -> Schema:
    """Build a schema describing *document*'s current shape."""
    properties = {
        key: infer_property(value) for key, value in document.items() if key not in skip
    }
    return Schema(schema_uri=DRAFT_07, title=title, type="object", properties=properties)
