"""Neutral intermediate representation of the emitted client.

The generator never builds a concrete target AST directly. Emitters and
synthesizers produce the declarations, statements and expressions below; a
backend (see :mod:`clientgen.backends`) translates them into its own syntax
tree and prints it.

Names carried by the IR are already final: they were produced by
:class:`~clientgen.generator.naming.NamingConventions`, so backends do not
rename anything.

All nodes are frozen dataclasses holding tuples, which keeps a finished
:class:`CompilationUnit` immutable and comparable.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union

# Well-known generic type names understood by every backend.
AWAITABLE = "Awaitable"
READ_ONLY_SEQUENCE = "ReadOnlySequence"
ITERABLE = "Iterable"
PAGED_RESPONSE = "PagedResponse"
STRING_MAP = "StringMap"
VOID = "Void"

# Runtime support types referenced by emitted code.
PAGE_OPTIONS = "PageOptions"
CANCELLATION_TOKEN = "CancellationToken"
URL_BUILDER = "UrlBuilder"
CLIENT_BASE = "BaseApiClient"


class TypeKind(str, enum.Enum):
    PRIMITIVE = "primitive"
    ENTITY = "entity"
    ENUMERATION = "enumeration"
    WRAPPER = "wrapper"
    EXTERNAL = "external"
    GENERIC = "generic"
    RUNTIME = "runtime"


@dataclass(frozen=True)
class TypeRef:
    """A concrete, emittable type reference."""

    name: str
    kind: TypeKind = TypeKind.RUNTIME
    args: tuple[TypeRef, ...] = ()
    nullable: bool = False

    @classmethod
    def generic(cls, name: str, *args: TypeRef) -> TypeRef:
        return cls(name=name, kind=TypeKind.GENERIC, args=tuple(args))

    @property
    def is_void(self) -> bool:
        return self.name == VOID


VOID_TYPE = TypeRef(VOID, TypeKind.GENERIC)


@dataclass(frozen=True)
class DocComment:
    summary: Optional[str] = None
    remark: Optional[str] = None
    returns: Optional[str] = None
    params: tuple[tuple[str, str], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.summary or self.remark or self.returns or self.params)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


class BinaryOperator(str, enum.Enum):
    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    BITWISE_OR = "|"


class TransportPrimitive(str, enum.Enum):
    """The request primitives offered by the runtime transport."""

    FETCH_ITEM = "fetch_item"
    FETCH_COLLECTION = "fetch_collection"
    FETCH_PAGED = "fetch_paged"
    PUT_BODY = "put_body"
    POST_BODY = "post_body"
    DELETE = "delete"

    @property
    def carries_body(self) -> bool:
        return self in (TransportPrimitive.PUT_BODY, TransportPrimitive.POST_BODY)


@dataclass(frozen=True)
class ArgumentRef:
    name: str


@dataclass(frozen=True)
class VariableRef:
    name: str


@dataclass(frozen=True)
class FieldRef:
    """A field of the instance being declared."""

    name: str


@dataclass(frozen=True)
class ThisRef:
    pass


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class MemberRef:
    target: Expression
    name: str


@dataclass(frozen=True)
class EnumMemberRef:
    """A sibling member referenced from inside an enumeration body."""

    name: str


@dataclass(frozen=True)
class BinaryOp:
    op: BinaryOperator
    left: Expression
    right: Expression


@dataclass(frozen=True)
class IsPresent:
    """True when *operand* holds a value (is not absent/null)."""

    operand: Expression


@dataclass(frozen=True)
class IsNotEmpty:
    """True when the text *operand* is neither absent nor empty."""

    operand: Expression


@dataclass(frozen=True)
class Unwrap:
    """The stored value of an identifier wrapper."""

    operand: Expression
    wrapper: TypeRef


@dataclass(frozen=True)
class NewMapping:
    """An empty, insertion-ordered string-keyed mapping."""


@dataclass(frozen=True)
class UrlSeed:
    template: str


@dataclass(frozen=True)
class UrlBuild:
    builder: str


@dataclass(frozen=True)
class TransportCall:
    primitive: TransportPrimitive
    result_type: Optional[TypeRef]
    url: Expression
    cancellation: Expression
    body: Optional[Expression] = None


@dataclass(frozen=True)
class MethodCall:
    target: Expression
    name: str
    args: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Await:
    operand: Expression


Expression = Union[
    ArgumentRef,
    VariableRef,
    FieldRef,
    ThisRef,
    Literal,
    MemberRef,
    EnumMemberRef,
    BinaryOp,
    IsPresent,
    IsNotEmpty,
    Unwrap,
    NewMapping,
    UrlSeed,
    UrlBuild,
    TransportCall,
    MethodCall,
    Await,
]


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VariableDecl:
    name: str
    type: TypeRef
    init: Expression


@dataclass(frozen=True)
class UrlAppend:
    builder: str
    key: str
    value: Expression


@dataclass(frozen=True)
class MappingInsert:
    mapping: str
    key: str
    value: Expression


@dataclass(frozen=True)
class Condition:
    test: Expression
    body: tuple[Statement, ...]


@dataclass(frozen=True)
class Return:
    value: Optional[Expression] = None


@dataclass(frozen=True)
class Assign:
    target: Expression
    value: Expression


@dataclass(frozen=True)
class ThrowIfNull:
    argument: str


Statement = Union[VariableDecl, UrlAppend, MappingInsert, Condition, Return, Assign, ThrowIfNull]


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArgumentDecl:
    """A method argument.

    ``parameter`` names the model parameter the argument was derived from;
    synthetic arguments (paging, cancellation) leave it unset.
    """

    name: str
    type: TypeRef
    default: Optional[Expression] = None
    parameter: Optional[str] = None
    doc: Optional[str] = None

    @property
    def is_optional(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class MethodDecl:
    name: str
    arguments: tuple[ArgumentDecl, ...]
    return_type: TypeRef
    statements: tuple[Statement, ...]
    doc: DocComment = field(default_factory=DocComment)
    is_async: bool = True
    source: Optional[str] = None

    def argument_for(self, parameter: str) -> Optional[ArgumentDecl]:
        return next((a for a in self.arguments if a.parameter == parameter), None)


@dataclass(frozen=True)
class FieldDecl:
    name: str
    type: TypeRef
    readonly: bool = False


@dataclass(frozen=True)
class PropertyDecl:
    """A public read-only property backed by a private field.

    ``setter`` names the private setter method, if one is emitted.

    The serialization metadata is plain data; backends decide how to express
    it (annotations, decorators, field options...).
    """

    name: str
    type: TypeRef
    backing_field: str
    serialization_name: Optional[str] = None
    converter: Optional[TypeRef] = None
    validation_bypass: Optional[str] = None
    setter: Optional[str] = None
    doc: DocComment = field(default_factory=DocComment)


@dataclass(frozen=True)
class ConstructorDecl:
    """A converting constructor taking a single source value.

    The statements end with an :class:`Assign` of the projected value to the
    wrapper's value field.
    """

    name: str
    source: TypeRef
    argument: ArgumentDecl
    statements: tuple[Statement, ...]


@dataclass(frozen=True)
class ConversionDecl:
    """An implicit conversion operator from *source* to the declaring type.

    The statements end with a :class:`Return` of the projected value; the
    backend wraps that value in a new instance of the declaring type.
    """

    name: str
    source: TypeRef
    argument: ArgumentDecl
    statements: tuple[Statement, ...]


@dataclass(frozen=True)
class EnumMemberDecl:
    name: str
    value: Optional[Expression] = None
    serialization_name: Optional[str] = None
    doc: DocComment = field(default_factory=DocComment)


@dataclass(frozen=True)
class EnumDecl:
    name: str
    base_type: TypeRef
    members: tuple[EnumMemberDecl, ...]
    is_flags: bool = False
    serialize_as_string: bool = False
    doc: DocComment = field(default_factory=DocComment)


@dataclass(frozen=True)
class ClassDecl:
    name: str
    base: Optional[TypeRef] = None
    fields: tuple[FieldDecl, ...] = ()
    properties: tuple[PropertyDecl, ...] = ()
    methods: tuple[MethodDecl, ...] = ()
    doc: DocComment = field(default_factory=DocComment)

    def member_names(self) -> list[str]:
        return [p.name for p in self.properties] + [m.name for m in self.methods]


@dataclass(frozen=True)
class WrapperDecl:
    name: str
    value_field: FieldDecl
    value_property: PropertyDecl
    constructors: tuple[ConstructorDecl, ...] = ()
    conversions: tuple[ConversionDecl, ...] = ()
    doc: DocComment = field(default_factory=DocComment)


@dataclass(frozen=True)
class CompilationUnit:
    """Everything one generation run emits, in emission order."""

    enumerations: tuple[EnumDecl, ...]
    entities: tuple[ClassDecl, ...]
    wrappers: tuple[WrapperDecl, ...]
    client: ClassDecl
