"""Read-only field registry for the primary domain.

Built by reflecting over the static shape of :class:`HeimdallConfig`
(never over a store's runtime state). Powers ``describe``/``search``
tooling, markdown documentation, and the generated schema document that
the ``cli`` provider registers.
"""

from __future__ import annotations

import types
import typing
from typing import Any, Literal, get_args, get_origin

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo

from heimdall.domain.models import CONFIG_VERSION, HeimdallConfig
from heimdall.domain.schema import DRAFT_07
from heimdall.domain.values import get_path, has_path


class FieldMetadata(BaseModel):
    """Description of one configuration field."""

    model_config = {"frozen": True}

    path: str
    type: str
    description: str = ""
    default: Any = None
    examples: list[Any] = Field(default_factory=list)
    choices: list[Any] = Field(default_factory=list)
    minimum: float | None = None
    maximum: float | None = None
    is_section: bool = False

    @property
    def category(self) -> str:
        return self.path.split(".", 1)[0]


class ConfigMetadata:
    """Searchable registry of :class:`FieldMetadata` keyed by dot-path."""

    def __init__(
        self,
        model: type[BaseModel] = HeimdallConfig,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self._model = model
        self._defaults = defaults if defaults is not None else {}
        self._fields: dict[str, FieldMetadata] = {}
        self._collect(model, prefix="")

    @property
    def fields(self) -> list[FieldMetadata]:
        return list(self._fields.values())

    def get(self, path: str) -> FieldMetadata | None:
        return self._fields.get(path)

    def by_prefix(self, prefix: str) -> list[FieldMetadata]:
        stem = prefix.rstrip(".")
        return [
            f for f in self._fields.values() if f.path == stem or f.path.startswith(f"{stem}.")
        ]

    def by_type(self, type_name: str) -> list[FieldMetadata]:
        return [f for f in self._fields.values() if f.type == type_name]

    def search(self, query: str) -> list[FieldMetadata]:
        """Case-insensitive match against paths and descriptions."""
        needle = query.lower()
        return [
            f
            for f in self._fields.values()
            if needle in f.path.lower() or needle in f.description.lower()
        ]

    def categories(self) -> list[str]:
        return sorted({f.category for f in self._fields.values()})

    def missing_descriptions(self) -> list[str]:
        """Paths whose field carries no description (documentation completeness)."""
        return [f.path for f in self._fields.values() if not f.description]

    # ------------------------------------------------------------------
    # Generated artifacts
    # ------------------------------------------------------------------

    def generate_documentation(self) -> str:
        """Render every field as a markdown reference, one table per category."""
        lines = ["# Heimdall Configuration Reference", ""]
        for category in self.categories():
            lines.append(f"## {category}")
            lines.append("")
            lines.append("| Field | Type | Default | Description |")
            lines.append("|---|---|---|---|")
            for f in self.by_prefix(category):
                if f.is_section:
                    continue
                default = "" if f.default is None else f"`{f.default}`"
                lines.append(f"| `{f.path}` | {f.type} | {default} | {f.description} |")
            lines.append("")
        return "\n".join(lines)

    def generate_schema(self) -> dict[str, Any]:
        """Schema document for the primary domain, in JSON-Schema form."""
        properties = {
            name: self._field_schema(info, name) for name, info in self._model.model_fields.items()
        }
        return {
            "$schema": DRAFT_07,
            "$id": "heimdall://schemas/cli",
            "title": "Heimdall CLI Configuration",
            "description": "Configuration for the heimdall desktop CLI",
            "type": "object",
            "version": CONFIG_VERSION,
            "properties": properties,
            "required": ["version"],
            "x-heimdall-metadata": {"generated_from": self._model.__name__},
        }

    # ------------------------------------------------------------------
    # Reflection
    # ------------------------------------------------------------------

    def _collect(self, model: type[BaseModel], prefix: str) -> None:
        for name, info in model.model_fields.items():
            path = f"{prefix}.{name}" if prefix else name
            nested = _model_type(info.annotation)
            minimum, maximum = _bounds(info)
            self._fields[path] = FieldMetadata(
                path=path,
                type=_type_name(info.annotation),
                description=info.description or "",
                default=self._default_at(path) if nested is None else None,
                examples=list(info.examples or []),
                choices=_choices(info.annotation),
                minimum=minimum,
                maximum=maximum,
                is_section=nested is not None,
            )
            if nested is not None:
                self._collect(nested, path)

    def _default_at(self, path: str) -> Any:
        if has_path(self._defaults, path):
            return get_path(self._defaults, path)
        return None

    def _field_schema(self, info: FieldInfo, path: str) -> dict[str, Any]:
        node = _annotation_schema(info.annotation)
        if info.description:
            node["description"] = info.description
        minimum, maximum = _bounds(info)
        if minimum is not None:
            node["minimum"] = minimum
        if maximum is not None:
            node["maximum"] = maximum
        min_length = _constraint(info, "min_length")
        if min_length is not None:
            node["minLength"] = min_length
        nested = _model_type(info.annotation)
        if nested is not None:
            node["properties"] = {
                name: self._field_schema(child, f"{path}.{name}")
                for name, child in nested.model_fields.items()
            }
        elif has_path(self._defaults, path):
            node["default"] = get_path(self._defaults, path)
        return node


def _strip_optional(annotation: Any) -> tuple[Any, bool]:
    origin = get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        members = [a for a in get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return members[0], True
    return annotation, False


def _model_type(annotation: Any) -> type[BaseModel] | None:
    inner, _ = _strip_optional(annotation)
    if get_origin(inner) is None and isinstance(inner, type) and issubclass(inner, BaseModel):
        return inner
    return None


def _type_name(annotation: Any) -> str:
    inner, _ = _strip_optional(annotation)
    origin = get_origin(inner)
    if origin is Literal:
        return "string"
    if origin is list:
        return "array"
    if origin is dict or _model_type(inner) is not None:
        return "object"
    if inner is bool:
        return "boolean"
    if inner is int:
        return "integer"
    if inner is float:
        return "number"
    if inner is str:
        return "string"
    return "any"


def _annotation_schema(annotation: Any) -> dict[str, Any]:
    inner, optional = _strip_optional(annotation)
    origin = get_origin(inner)
    node: dict[str, Any] = {}
    type_name = _type_name(inner)
    if type_name != "any":
        node["type"] = [type_name, "null"] if optional else type_name
    if origin is Literal:
        node["enum"] = list(get_args(inner))
    elif origin is list:
        args = get_args(inner)
        if args:
            node["items"] = _annotation_schema(args[0])
    elif origin is dict:
        args = get_args(inner)
        value_model = _model_type(args[1]) if len(args) == 2 else None
        if value_model is not None:
            node["additionalProperties"] = _model_schema(value_model)
    return node


def _model_schema(model: type[BaseModel]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        child = _annotation_schema(info.annotation)
        if info.description:
            child["description"] = info.description
        nested = _model_type(info.annotation)
        if nested is not None:
            child["properties"] = _model_schema(nested)["properties"]
        properties[name] = child
    return {"type": "object", "properties": properties}


def _choices(annotation: Any) -> list[Any]:
    inner, _ = _strip_optional(annotation)
    if get_origin(inner) is Literal:
        return list(get_args(inner))
    return []


def _constraint(info: FieldInfo, name: str) -> Any:
    for item in info.metadata:
        value = getattr(item, name, None)
        if value is not None:
            return value
    return None


def _bounds(info: FieldInfo) -> tuple[float | None, float | None]:
    return _constraint(info, "ge"), _constraint(info, "le")
