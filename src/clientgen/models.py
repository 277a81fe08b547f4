"""Canonical Pydantic models shared across all clientgen modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- resolved from project config, environment, and CLI
flags:
    :class:`GeneratorConfig`.

**API model types** -- the declarative description of the API surface that
the generator consumes. They are produced by
:mod:`clientgen.registry` (either from a model document or from registration
callables) and are read-only for the whole emission phase:
    :class:`PrimitiveType`, :class:`TargetKind`, :class:`ModelRef`,
    :class:`Documentation`, :class:`Property`, :class:`Entity`,
    :class:`EnumerationMember`, :class:`Enumeration`, :class:`WrapperRef`,
    :class:`IdentifierWrapper`, :class:`MethodType`,
    :class:`ParameterLocation`, :class:`MethodParameter`, :class:`Method`,
    and :class:`ModelRegistry`.

All API model types are frozen so a single :class:`ModelRef` instance can be
shared by any number of properties and parameters.
"""

from __future__ import annotations

import enum
import keyword
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# --- Configuration ---


class GeneratorConfig(BaseModel):
    """Effective generator settings for one run.

    Resolved by :func:`~clientgen.config.resolve_config` from CLI flags,
    environment variables, the project-local ``clientgen.json`` and these
    defaults, in that order of precedence.
    """

    client_name: str = Field(
        default="ApiClient", description="Name of the emitted client class"
    )
    runtime_module: str = Field(
        default="clientgen.runtime",
        description="Module the emitted code imports its transport support from",
    )
    base_type: str = Field(
        default="ApiObject",
        description="Common base class for entities without an explicit base",
    )
    target: str = Field(default="python", description="Emission backend name")
    strict: bool = Field(
        default=True,
        description="Abort generation on model validation errors instead of warning",
    )

    @field_validator("client_name", "base_type")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not value.isidentifier() or keyword.iskeyword(value):
            raise ValueError(f"'{value}' is not a valid identifier")
        return value


# --- API model ---


class PrimitiveType(str, enum.Enum):
    """Primitive value types an API model may reference."""

    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    BOOLEAN = "boolean"
    DOUBLE = "double"
    DATE = "date"  # calendar date only, no time of day and no timezone
    DATETIME = "datetime"
    TIMESPAN = "timespan"
    OBJECT = "object"


class TargetKind(str, enum.Enum):
    """What a :class:`ModelRef` points at."""

    PRIMITIVE = "primitive"
    ENTITY = "entity"
    ENUMERATION = "enumeration"
    WRAPPER = "wrapper"
    EXTERNAL = "external"  # hand-written type shipped by the runtime


class ModelRef(BaseModel):
    """A typed reference to a model target with collection/nullability flags.

    The two flags are independent: ``is_nullable`` applies to the element
    type, ``is_collection`` wraps it. In model documents a reference is
    written as ``Name``, ``Name[]``, ``Name?`` or ``Name[]?``.

    Example::

        ModelRef.entity("Project", collection=True)
        ModelRef.primitive(PrimitiveType.DATE, nullable=True)
    """

    model_config = ConfigDict(frozen=True)

    kind: TargetKind
    target: str
    is_collection: bool = False
    is_nullable: bool = False

    @model_validator(mode="after")
    def _check_primitive(self) -> ModelRef:
        if self.kind == TargetKind.PRIMITIVE:
            PrimitiveType(self.target)
        return self

    @classmethod
    def primitive(
        cls,
        primitive: Union[PrimitiveType, str],
        *,
        nullable: bool = False,
        collection: bool = False,
    ) -> ModelRef:
        return cls(
            kind=TargetKind.PRIMITIVE,
            target=PrimitiveType(primitive).value,
            is_nullable=nullable,
            is_collection=collection,
        )

    @classmethod
    def entity(cls, name: str, *, nullable: bool = False, collection: bool = False) -> ModelRef:
        return cls(kind=TargetKind.ENTITY, target=name, is_nullable=nullable, is_collection=collection)

    @classmethod
    def enumeration(
        cls, name: str, *, nullable: bool = False, collection: bool = False
    ) -> ModelRef:
        return cls(
            kind=TargetKind.ENUMERATION, target=name, is_nullable=nullable, is_collection=collection
        )

    @classmethod
    def wrapper(cls, name: str, *, nullable: bool = False, collection: bool = False) -> ModelRef:
        return cls(kind=TargetKind.WRAPPER, target=name, is_nullable=nullable, is_collection=collection)

    @classmethod
    def external(cls, name: str, *, nullable: bool = False, collection: bool = False) -> ModelRef:
        return cls(kind=TargetKind.EXTERNAL, target=name, is_nullable=nullable, is_collection=collection)

    @property
    def is_entity(self) -> bool:
        return self.kind == TargetKind.ENTITY

    @property
    def is_wrapper(self) -> bool:
        return self.kind == TargetKind.WRAPPER

    @property
    def primitive_type(self) -> Optional[PrimitiveType]:
        """The primitive this reference targets, or ``None`` for named types."""
        if self.kind != TargetKind.PRIMITIVE:
            return None
        return PrimitiveType(self.target)

    def element(self) -> ModelRef:
        """Return the same reference without the collection flag."""
        if not self.is_collection:
            return self
        return self.model_copy(update={"is_collection": False})

    def __str__(self) -> str:
        text = self.target
        if self.is_collection:
            text += "[]"
        if self.is_nullable:
            text += "?"
        return text


class Documentation(BaseModel):
    """Optional documentation attached to a declaration.

    A bare string in a model document is accepted as the summary.
    """

    model_config = ConfigDict(frozen=True)

    summary: Optional[str] = None
    remark: Optional[str] = None
    returns: Optional[str] = None


def _coerce_documentation(value: Any) -> Any:
    if isinstance(value, str):
        return {"summary": value}
    return value


class _Documented(BaseModel):
    model_config = ConfigDict(frozen=True)

    documentation: Optional[Documentation] = None

    @field_validator("documentation", mode="before")
    @classmethod
    def _documentation_shorthand(cls, value: Any) -> Any:
        return _coerce_documentation(value)


class Property(_Documented):
    """A single entity property.

    ``serialization_name`` overrides the JSON key; when absent the raw model
    ``name`` is used as-is (it is never case-converted for serialization).
    """

    name: str
    type: ModelRef
    serialization_name: Optional[str] = None
    json_converter: Optional[ModelRef] = None


class Entity(_Documented):
    """A structured API resource, emitted as a class with read-only properties."""

    name: str
    base_type: Optional[str] = Field(
        default=None, description="Base entity name; defaults to the common base type"
    )
    properties: tuple[Property, ...] = ()


class EnumerationMember(_Documented):
    """A single enumeration member; ``value`` is optional."""

    name: str
    value: Optional[int] = None
    serialization_name: Optional[str] = None


class Enumeration(_Documented):
    """An enumeration backed by a numeric primitive.

    ``generate_all_member`` is only meaningful when ``is_flags`` is set (the
    values are bit-disjoint), but the generator does not enforce that: it
    OR-aggregates every declared member regardless.
    """

    name: str
    base_type: PrimitiveType = PrimitiveType.INT32
    is_flags: bool = False
    serialize_as_string: bool = False
    generate_all_member: bool = False
    members: tuple[EnumerationMember, ...] = ()


class WrapperRef(BaseModel):
    """One admissible source for an identifier wrapper.

    An empty ``property_path`` means the source *is* the final type;
    otherwise the wrapped value is read as ``source.prop1.prop2...``.
    """

    model_config = ConfigDict(frozen=True)

    target: ModelRef
    property_path: tuple[str, ...] = ()


class IdentifierWrapper(_Documented):
    """A value type wrapping a primitive, implicitly constructible from richer types."""

    name: str
    final_type: ModelRef
    refs: tuple[WrapperRef, ...] = ()


class MethodType(str, enum.Enum):
    """How an operation talks to the API."""

    GET = "get"
    GET_PAGED = "get_paged"
    PUT = "put"
    POST = "post"
    DELETE = "delete"


class ParameterLocation(str, enum.Enum):
    """Where a parameter travels; ``DEFAULT`` defers to inference."""

    DEFAULT = "default"
    URL = "url"
    BODY = "body"


class MethodParameter(_Documented):
    """A single operation parameter."""

    name: str
    type: ModelRef
    is_optional: bool = False
    location: ParameterLocation = ParameterLocation.DEFAULT
    override_argument_name: Optional[str] = None


class Method(_Documented):
    """A callable API operation.

    Every ``:name`` placeholder in ``url_template`` is expected to match a
    parameter that resolves to the URL; see
    :func:`clientgen.registry.validation.validate_registry`.
    """

    name: str
    method_type: MethodType
    url_template: str
    parameters: tuple[MethodParameter, ...] = ()
    return_type: Optional[ModelRef] = None


class ModelRegistry(BaseModel):
    """The closed, read-only set of everything the generator emits.

    Built once by :class:`~clientgen.registry.builder.RegistryBuilder` and
    passed explicitly to every emitter and synthesizer. Declaration order is
    preserved; emitters apply their own stable ordering.
    """

    model_config = ConfigDict(frozen=True)

    enumerations: tuple[Enumeration, ...] = ()
    entities: tuple[Entity, ...] = ()
    wrappers: tuple[IdentifierWrapper, ...] = ()
    methods: tuple[Method, ...] = ()

    def entity(self, name: str) -> Optional[Entity]:
        return next((e for e in self.entities if e.name == name), None)

    def enumeration(self, name: str) -> Optional[Enumeration]:
        return next((e for e in self.enumerations if e.name == name), None)

    def wrapper(self, name: str) -> Optional[IdentifierWrapper]:
        return next((w for w in self.wrappers if w.name == name), None)

    def wrapper_for(self, ref: ModelRef) -> Optional[IdentifierWrapper]:
        """Return the wrapper *ref* points at, or ``None`` if it is not a wrapper reference."""
        if not ref.is_wrapper:
            return None
        return self.wrapper(ref.target)

    def declared_names(self) -> set[str]:
        return {
            *(e.name for e in self.enumerations),
            *(e.name for e in self.entities),
            *(w.name for w in self.wrappers),
        }
