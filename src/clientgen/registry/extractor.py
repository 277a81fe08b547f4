"""Turn a raw model document into a :class:`~clientgen.models.ModelRegistry`.

A model document is a JSON/YAML mapping whose sections mirror the model
types field for field::

    clientgen: 1
    externals: [PathWithNamespace]
    enumerations:
      - name: AccessLevel
        members:
          - {name: Guest, value: 10}
    entities:
      - name: Project
        properties:
          - {name: id, type: int64}
          - {name: tag_list, type: "string[]"}
    wrappers:
      - name: ProjectId
        final_type: string
        refs:
          - string
          - {target: Project, property_path: [path_with_namespace]}
    methods:
      - name: GetProjects
        method_type: get
        url_template: /projects
        return_type: "Project[]"

Type references use the ``Name``, ``Name[]``, ``Name?`` and ``Name[]?``
shorthand; the kind of the target is looked up among the primitives, the
declared enumerations, entities and wrappers, and the ``externals`` list of
runtime-supplied types. A wrapper ref written as a bare string targets that
type with an empty property path.
"""

from __future__ import annotations

import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from clientgen.exceptions import ModelDefinitionError
from clientgen.models import (
    Entity,
    Enumeration,
    IdentifierWrapper,
    Method,
    ModelRef,
    ModelRegistry,
    PrimitiveType,
    TargetKind,
)
from clientgen.registry.builder import RegistryBuilder

_SHORTHAND_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(\[\])?\s*(\?)?\s*$")

_PRIMITIVES = frozenset(p.value for p in PrimitiveType)

_M = TypeVar("_M", bound=BaseModel)


class TypeTable:
    """Name-to-kind lookup used to resolve reference shorthand."""

    def __init__(self, kinds: dict[str, TargetKind]) -> None:
        self._kinds = kinds

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> TypeTable:
        kinds: dict[str, TargetKind] = {}
        for name in document.get("externals") or ():
            kinds[str(name)] = TargetKind.EXTERNAL
        sections = (
            ("enumerations", TargetKind.ENUMERATION),
            ("entities", TargetKind.ENTITY),
            ("wrappers", TargetKind.WRAPPER),
        )
        for section, kind in sections:
            for item in _section(document, section):
                name = item.get("name")
                if isinstance(name, str):
                    kinds[name] = kind
        return cls(kinds)

    def parse(self, value: Any) -> Any:
        """Resolve a shorthand string to a :class:`ModelRef`; other values pass through.

        Raises:
            ModelDefinitionError: If the string is malformed or names an
                unknown type.

        Example::

            >>> table.parse("Project[]")
            ModelRef(kind=<TargetKind.ENTITY: 'entity'>, target='Project', is_collection=True, ...)
        """
        if not isinstance(value, str):
            return value

        match = _SHORTHAND_RE.match(value)
        if match is None:
            raise ModelDefinitionError(f"Malformed type reference '{value}'")
        name, collection, nullable = match.groups()

        if name in _PRIMITIVES:
            kind = TargetKind.PRIMITIVE
        elif name in self._kinds:
            kind = self._kinds[name]
        else:
            raise ModelDefinitionError(f"Unknown type '{name}' in reference '{value}'")

        return ModelRef(
            kind=kind,
            target=name,
            is_collection=collection is not None,
            is_nullable=nullable is not None,
        )


def registry_from_document(document: dict[str, Any]) -> ModelRegistry:
    """Build a registry from a parsed model document.

    Args:
        document: The dictionary returned by
            :func:`~clientgen.registry.loader.load_model`.

    Returns:
        The checked, immutable registry.

    Raises:
        ModelDefinitionError: If a section is malformed or the assembled
            model is inconsistent.
    """
    table = TypeTable.from_document(document)
    builder = RegistryBuilder()

    for item in _section(document, "enumerations"):
        builder.add_enumeration(_validate(Enumeration, _enumeration(item)))
    for item in _section(document, "entities"):
        builder.add_entity(_validate(Entity, _entity(item, table)))
    for item in _section(document, "wrappers"):
        builder.add_wrapper(_validate(IdentifierWrapper, _wrapper(item, table)))
    for item in _section(document, "methods"):
        builder.add_method(_validate(Method, _method(item, table)))

    return builder.build()


# ---------------------------------------------------------------------------
# Section helpers
# ---------------------------------------------------------------------------


def _section(document: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = document.get(key) or []
    if not isinstance(items, list):
        raise ModelDefinitionError(f"Section '{key}' must be a list")
    for item in items:
        if not isinstance(item, dict):
            raise ModelDefinitionError(f"Entries of '{key}' must be mappings, got {item!r}")
    return items


def _validate(model: type[_M], data: dict[str, Any]) -> _M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        name = data.get("name", "<unnamed>")
        raise ModelDefinitionError(f"Invalid {model.__name__} '{name}': {exc}") from exc


def _with_refs(item: dict[str, Any], table: TypeTable, *keys: str) -> dict[str, Any]:
    data = dict(item)
    for key in keys:
        if data.get(key) is not None:
            data[key] = table.parse(data[key])
    return data


def _enumeration(item: dict[str, Any]) -> dict[str, Any]:
    data = dict(item)
    data["members"] = [
        {"name": member} if isinstance(member, str) else member
        for member in data.get("members") or []
    ]
    return data


def _entity(item: dict[str, Any], table: TypeTable) -> dict[str, Any]:
    data = dict(item)
    data["properties"] = [
        _with_refs(prop, table, "type", "json_converter")
        for prop in data.get("properties") or []
    ]
    return data


def _wrapper(item: dict[str, Any], table: TypeTable) -> dict[str, Any]:
    data = _with_refs(item, table, "final_type")
    refs = []
    for ref in data.get("refs") or []:
        if isinstance(ref, str):
            ref = {"target": ref}
        refs.append(_with_refs(ref, table, "target"))
    data["refs"] = refs
    return data


def _method(item: dict[str, Any], table: TypeTable) -> dict[str, Any]:
    data = _with_refs(item, table, "return_type")
    data["parameters"] = [
        _with_refs(parameter, table, "type") for parameter in data.get("parameters") or []
    ]
    return data
