"""Map model references to emittable type references.

:class:`TypeReferenceResolver` is a pure mapping with no failure modes:

* The base type comes from the reference target: a primitive keeps its
  primitive name, every named target keeps its declared name (through
  :meth:`NamingConventions.type_name`).
* ``is_collection`` wraps the base type, differently per usage. Public
  properties expose a read-only sequence; call arguments accept any iterable,
  which admits a broader range of caller-supplied collections than the
  properties return.
* ``is_nullable`` is carried on the element type for primitives,
  enumerations, wrappers and external value types. Entities are reference
  types and never get a separate nullable marker.
"""

from __future__ import annotations

import enum

from clientgen import ir
from clientgen.generator.naming import NamingConventions
from clientgen.models import ModelRef, TargetKind


class TypeUsage(str, enum.Enum):
    """Where a resolved type is going to appear."""

    PROPERTY = "property"
    ARGUMENT = "argument"


_KIND_MAP: dict[TargetKind, ir.TypeKind] = {
    TargetKind.PRIMITIVE: ir.TypeKind.PRIMITIVE,
    TargetKind.ENTITY: ir.TypeKind.ENTITY,
    TargetKind.ENUMERATION: ir.TypeKind.ENUMERATION,
    TargetKind.WRAPPER: ir.TypeKind.WRAPPER,
    TargetKind.EXTERNAL: ir.TypeKind.EXTERNAL,
}

_COLLECTION_WRAPPERS: dict[TypeUsage, str] = {
    TypeUsage.PROPERTY: ir.READ_ONLY_SEQUENCE,
    TypeUsage.ARGUMENT: ir.ITERABLE,
}


class TypeReferenceResolver:
    """Resolve :class:`~clientgen.models.ModelRef` values to :class:`~clientgen.ir.TypeRef`."""

    def __init__(self, naming: NamingConventions) -> None:
        self._naming = naming

    def base(self, ref: ModelRef) -> ir.TypeRef:
        """Resolve the element type of *ref*, ignoring ``is_collection``."""
        if ref.kind == TargetKind.PRIMITIVE:
            name = ref.target
        else:
            name = self._naming.type_name(ref.target)
        nullable = ref.is_nullable and ref.kind != TargetKind.ENTITY
        return ir.TypeRef(name=name, kind=_KIND_MAP[ref.kind], nullable=nullable)

    def resolve(self, ref: ModelRef, usage: TypeUsage = TypeUsage.PROPERTY) -> ir.TypeRef:
        type_ref = self.base(ref)
        if ref.is_collection:
            type_ref = ir.TypeRef.generic(_COLLECTION_WRAPPERS[usage], type_ref)
        return type_ref

    def property_type(self, ref: ModelRef) -> ir.TypeRef:
        return self.resolve(ref, TypeUsage.PROPERTY)

    def argument_type(self, ref: ModelRef) -> ir.TypeRef:
        return self.resolve(ref, TypeUsage.ARGUMENT)
