"""Python backend -- emit an ``asyncio`` client module.

The neutral IR is translated into :mod:`ast` nodes and printed with
:func:`ast.unparse`. Class bodies are printed member by member so the
emitted module keeps conventional blank lines, and a Jinja2 template renders
the banner at the top of the file.

IR to Python mapping:

=============================  ===========================================
IR                             Python
=============================  ===========================================
``EnumDecl``                   ``enum.IntEnum`` / ``enum.IntFlag`` subclass,
                               ``@string_enum(...)`` when string-serialized
``ClassDecl`` (entity)         ``ApiObject`` subclass with annotated backing
                               fields, ``@property`` + ``@json_property``
                               getters and ``_set_<name>`` setters
``WrapperDecl``                ``Reference`` subclass; ``from_<source>``
                               classmethods and ``@implicit_conversion``
                               static conversions
``ClassDecl`` (client)         ``BaseApiClient`` subclass
``MethodDecl``                 ``async def``
``Unwrap``                     ``Wrapper.coerce(value).value``
``TransportCall``              ``self.get_item(...)`` and friends
=============================  ===========================================
"""

from __future__ import annotations

import ast
import textwrap
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

import clientgen
from clientgen import ir
from clientgen.backends import Backend
from clientgen.exceptions import BackendError
from clientgen.models import GeneratorConfig

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``backends/templates/``)."""

INDENT = "    "

# Primitive name -> (module to import, attribute); module None means builtin.
_PRIMITIVES: dict[str, tuple[Optional[str], str]] = {
    "string": (None, "str"),
    "int32": (None, "int"),
    "int64": (None, "int"),
    "boolean": (None, "bool"),
    "double": (None, "float"),
    "date": ("datetime", "date"),
    "datetime": ("datetime", "datetime"),
    "timespan": ("datetime", "timedelta"),
    "object": (None, "object"),
}

_TRANSPORT_METHODS: dict[ir.TransportPrimitive, str] = {
    ir.TransportPrimitive.FETCH_ITEM: "get_item",
    ir.TransportPrimitive.FETCH_COLLECTION: "get_collection",
    ir.TransportPrimitive.FETCH_PAGED: "get_paged",
    ir.TransportPrimitive.PUT_BODY: "put_json",
    ir.TransportPrimitive.POST_BODY: "post_json",
    ir.TransportPrimitive.DELETE: "delete",
}

_COMPARISONS: dict[ir.BinaryOperator, type[ast.cmpop]] = {
    ir.BinaryOperator.EQUALS: ast.Eq,
    ir.BinaryOperator.NOT_EQUALS: ast.NotEq,
    ir.BinaryOperator.GREATER_THAN: ast.Gt,
}


# ---------------------------------------------------------------------------
# AST construction helpers
# ---------------------------------------------------------------------------


def _name(identifier: str) -> ast.Name:
    return ast.Name(id=identifier, ctx=ast.Load())


def _attr(value: ast.expr, attr: str) -> ast.Attribute:
    return ast.Attribute(value=value, attr=attr, ctx=ast.Load())


def _call(func: ast.expr, *args: ast.expr, **keywords: ast.expr) -> ast.Call:
    return ast.Call(
        func=func,
        args=list(args),
        keywords=[ast.keyword(arg=k, value=v) for k, v in keywords.items()],
    )


def _subscript(value: ast.expr, *items: ast.expr) -> ast.Subscript:
    index = items[0] if len(items) == 1 else ast.Tuple(elts=list(items), ctx=ast.Load())
    return ast.Subscript(value=value, slice=index, ctx=ast.Load())


def _docstring(
    doc: ir.DocComment, indent: str = "", heading: str = "Args"
) -> Optional[ast.Expr]:
    """Render *doc* as a docstring statement, or ``None`` when it is empty.

    *indent* is prefixed to continuation lines so the text lines up with
    the body it ends up in.
    """
    if doc.is_empty:
        return None
    parts: list[str] = []
    if doc.summary:
        parts.append(doc.summary.strip())
    if doc.remark:
        parts.append(doc.remark.strip())
    if doc.params:
        parts.append(f"{heading}:\n" + "\n".join(f"{INDENT}{n}: {d}" for n, d in doc.params))
    if doc.returns:
        parts.append(f"Returns:\n{INDENT}{doc.returns.strip()}")

    text = "\n\n".join(parts)
    if "\n" in text:
        text = textwrap.indent(text, indent).lstrip() + "\n" + indent
    return ast.Expr(value=ast.Constant(value=text))


def _node_fields(node_type: type[ast.AST], **fields: object) -> ast.AST:
    # Newer interpreters add ``type_params`` to class and function nodes.
    if "type_params" in node_type._fields:
        fields.setdefault("type_params", [])
    return node_type(**fields)


class _Imports:
    """Names the emitted module has to import."""

    def __init__(self) -> None:
        self.modules: set[str] = set()
        self.typing: set[str] = set()
        self.runtime: set[str] = set()

    def render(self, runtime_module: str) -> str:
        blocks = ["from __future__ import annotations"]

        stdlib = [f"import {m}" for m in sorted(self.modules)]
        if self.typing:
            stdlib.append(f"from typing import {', '.join(sorted(self.typing))}")
        if stdlib:
            blocks.append("\n".join(stdlib))

        if self.runtime:
            names = sorted(self.runtime)
            line = f"from {runtime_module} import {', '.join(names)}"
            if len(line) > 88:
                inner = "".join(f"{INDENT}{n},\n" for n in names)
                line = f"from {runtime_module} import (\n{inner})"
            blocks.append(line)
        return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Translator
# ---------------------------------------------------------------------------


class _Translator:
    """Translate one compilation unit; collects the imports it needs."""

    def __init__(self, config: GeneratorConfig) -> None:
        self.config = config
        self.imports = _Imports()

    # -- types --------------------------------------------------------------

    def type_expr(self, type_ref: ir.TypeRef, runtime: bool = False) -> ast.expr:
        """Translate a type reference.

        With *runtime* set the expression is meant to be evaluated (passed to
        the transport or to ``implicit_conversion``), so nullability is
        dropped.
        """
        if type_ref.kind == ir.TypeKind.GENERIC:
            expr = self._generic(type_ref, runtime)
        elif type_ref.kind == ir.TypeKind.PRIMITIVE:
            try:
                module, attr = _PRIMITIVES[type_ref.name]
            except KeyError:
                raise BackendError(f"Unsupported primitive type '{type_ref.name}'") from None
            if module is None:
                expr = _name(attr)
            else:
                self.imports.modules.add(module)
                expr = _attr(_name(module), attr)
        else:
            if type_ref.kind in (ir.TypeKind.RUNTIME, ir.TypeKind.EXTERNAL):
                self.imports.runtime.add(type_ref.name)
            expr = _name(type_ref.name)

        if type_ref.nullable and not runtime:
            self.imports.typing.add("Optional")
            expr = _subscript(_name("Optional"), expr)
        return expr

    def _generic(self, type_ref: ir.TypeRef, runtime: bool) -> ast.expr:
        name = type_ref.name
        if name == ir.VOID:
            return ast.Constant(value=None)
        if name == ir.AWAITABLE:
            return self.type_expr(type_ref.args[0], runtime)
        if name == ir.STRING_MAP:
            self.imports.typing.add("Any")
            return _subscript(_name("dict"), _name("str"), _name("Any"))

        args = [self.type_expr(a, runtime) for a in type_ref.args]
        if name == ir.READ_ONLY_SEQUENCE:
            self.imports.typing.add("Sequence")
            return _subscript(_name("Sequence"), *args)
        if name == ir.ITERABLE:
            self.imports.typing.add("Iterable")
            return _subscript(_name("Iterable"), *args)
        if name == ir.PAGED_RESPONSE:
            self.imports.runtime.add(ir.PAGED_RESPONSE)
            return _subscript(_name(ir.PAGED_RESPONSE), *args)
        raise BackendError(f"Unsupported generic type '{name}'")

    def annotation(self, argument: ir.ArgumentDecl) -> ast.expr:
        type_ref = argument.type
        if argument.is_optional and not type_ref.nullable:
            type_ref = ir.TypeRef(type_ref.name, type_ref.kind, type_ref.args, nullable=True)
        return self.type_expr(type_ref)

    # -- expressions --------------------------------------------------------

    def expr(self, node: ir.Expression) -> ast.expr:
        if isinstance(node, (ir.ArgumentRef, ir.VariableRef)):
            return _name(node.name)
        if isinstance(node, ir.FieldRef):
            return _attr(_name("self"), node.name)
        if isinstance(node, ir.ThisRef):
            return _name("self")
        if isinstance(node, ir.Literal):
            return ast.Constant(value=node.value)
        if isinstance(node, ir.MemberRef):
            return _attr(self.expr(node.target), node.name)
        if isinstance(node, ir.EnumMemberRef):
            return _name(node.name)
        if isinstance(node, ir.BinaryOp):
            return self._binary(node)
        if isinstance(node, ir.IsPresent):
            return ast.Compare(
                left=self.expr(node.operand), ops=[ast.IsNot()], comparators=[ast.Constant(None)]
            )
        if isinstance(node, ir.IsNotEmpty):
            return self.expr(node.operand)
        if isinstance(node, ir.Unwrap):
            coerced = _call(_attr(_name(node.wrapper.name), "coerce"), self.expr(node.operand))
            return _attr(coerced, "value")
        if isinstance(node, ir.NewMapping):
            return ast.Dict(keys=[], values=[])
        if isinstance(node, ir.UrlSeed):
            self.imports.runtime.add(ir.URL_BUILDER)
            return _call(_attr(_name(ir.URL_BUILDER), "get"), ast.Constant(node.template))
        if isinstance(node, ir.UrlBuild):
            return _call(_attr(_name(node.builder), "build"))
        if isinstance(node, ir.TransportCall):
            return self._transport(node)
        if isinstance(node, ir.MethodCall):
            return _call(_attr(self.expr(node.target), node.name), *(self.expr(a) for a in node.args))
        if isinstance(node, ir.Await):
            return ast.Await(value=self.expr(node.operand))
        raise BackendError(f"Unsupported expression {type(node).__name__}")

    def _binary(self, node: ir.BinaryOp) -> ast.expr:
        left, right = self.expr(node.left), self.expr(node.right)
        if node.op == ir.BinaryOperator.BITWISE_OR:
            return ast.BinOp(left=left, op=ast.BitOr(), right=right)
        return ast.Compare(left=left, ops=[_COMPARISONS[node.op]()], comparators=[right])

    def _transport(self, node: ir.TransportCall) -> ast.expr:
        args: list[ast.expr] = [self.expr(node.url)]
        if node.primitive.carries_body:
            args.append(self.expr(node.body) if node.body is not None else ast.Constant(None))
        if node.primitive != ir.TransportPrimitive.DELETE:
            if node.result_type is None or node.result_type.is_void:
                args.append(ast.Constant(None))
            else:
                args.append(self.type_expr(node.result_type, runtime=True))
        args.append(self.expr(node.cancellation))
        return _call(_attr(_name("self"), _TRANSPORT_METHODS[node.primitive]), *args)

    # -- statements ---------------------------------------------------------

    def statements(self, nodes: tuple[ir.Statement, ...]) -> list[ast.stmt]:
        return [self.statement(n) for n in nodes]

    def statement(self, node: ir.Statement) -> ast.stmt:
        if isinstance(node, ir.VariableDecl):
            return ast.Assign(targets=[ast.Name(id=node.name, ctx=ast.Store())], value=self.expr(node.init))
        if isinstance(node, ir.UrlAppend):
            call = _call(
                _attr(_name(node.builder), "with_value"),
                ast.Constant(node.key),
                self.expr(node.value),
            )
            return ast.Expr(value=call)
        if isinstance(node, ir.MappingInsert):
            target = ast.Subscript(
                value=_name(node.mapping), slice=ast.Constant(node.key), ctx=ast.Store()
            )
            return ast.Assign(targets=[target], value=self.expr(node.value))
        if isinstance(node, ir.Condition):
            return ast.If(test=self.expr(node.test), body=self.statements(node.body), orelse=[])
        if isinstance(node, ir.Return):
            return ast.Return(value=self.expr(node.value) if node.value is not None else None)
        if isinstance(node, ir.Assign):
            target = self.expr(node.target)
            target.ctx = ast.Store()
            return ast.Assign(targets=[target], value=self.expr(node.value))
        if isinstance(node, ir.ThrowIfNull):
            error = _call(_name("TypeError"), ast.Constant(f"{node.argument} must not be None"))
            return ast.If(
                test=ast.Compare(
                    left=_name(node.argument), ops=[ast.Is()], comparators=[ast.Constant(None)]
                ),
                body=[ast.Raise(exc=error, cause=None)],
                orelse=[],
            )
        raise BackendError(f"Unsupported statement {type(node).__name__}")

    # -- declarations -------------------------------------------------------

    def arguments(
        self, arguments: tuple[ir.ArgumentDecl, ...], first: Optional[str] = "self"
    ) -> ast.arguments:
        args = [ast.arg(arg=first)] if first else []
        args.extend(ast.arg(arg=a.name, annotation=self.annotation(a)) for a in arguments)
        defaults = [self.expr(a.default) for a in arguments if a.default is not None]
        return ast.arguments(
            posonlyargs=[], args=args, vararg=None, kwonlyargs=[], kw_defaults=[], kwarg=None,
            defaults=defaults,
        )

    def function(
        self,
        name: str,
        args: ast.arguments,
        body: list[ast.stmt],
        returns: Optional[ast.expr],
        decorators: Optional[list[ast.expr]] = None,
        doc: Optional[ir.DocComment] = None,
        is_async: bool = False,
    ) -> ast.stmt:
        docstring = _docstring(doc, INDENT) if doc is not None else None
        if docstring is not None:
            body = [docstring] + body
        node_type = ast.AsyncFunctionDef if is_async else ast.FunctionDef
        return _node_fields(
            node_type,
            name=name,
            args=args,
            body=body or [ast.Pass()],
            decorator_list=decorators or [],
            returns=returns,
            type_comment=None,
        )

    def method(self, decl: ir.MethodDecl) -> ast.stmt:
        return self.function(
            decl.name,
            self.arguments(decl.arguments),
            self.statements(decl.statements),
            self.type_expr(decl.return_type),
            doc=decl.doc,
            is_async=decl.is_async,
        )

    def property_getter(self, prop: ir.PropertyDecl, serialized: bool) -> ast.stmt:
        decorators: list[ast.expr] = [_name("property")]
        if serialized:
            self.imports.runtime.add("json_property")
            keywords: dict[str, ast.expr] = {}
            if prop.converter is not None:
                keywords["converter"] = self.type_expr(prop.converter, runtime=True)
            if prop.validation_bypass:
                keywords["skip_validation"] = ast.Constant(prop.validation_bypass)
            decorators.append(
                _call(
                    _name("json_property"),
                    ast.Constant(prop.serialization_name or prop.name),
                    **keywords,
                )
            )
        return self.function(
            prop.name,
            self.arguments(()),
            [ast.Return(value=_attr(_name("self"), prop.backing_field))],
            self.type_expr(prop.type),
            decorators=decorators,
            doc=prop.doc,
        )

    def property_setter(self, prop: ir.PropertyDecl) -> ast.stmt:
        assert prop.setter is not None
        target = ast.Attribute(value=_name("self"), attr=prop.backing_field, ctx=ast.Store())
        args = ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg="self"), ast.arg(arg="value", annotation=self.type_expr(prop.type))],
            vararg=None, kwonlyargs=[], kw_defaults=[], kwarg=None, defaults=[],
        )
        return self.function(
            prop.setter,
            args,
            [ast.Assign(targets=[target], value=_name("value"))],
            ast.Constant(None),
        )

    def field(self, decl: ir.FieldDecl) -> ast.stmt:
        return ast.AnnAssign(
            target=ast.Name(id=decl.name, ctx=ast.Store()),
            annotation=self.type_expr(decl.type),
            value=None,
            simple=1,
        )

    def class_header(
        self, name: str, bases: list[ast.expr], decorators: Optional[list[ast.expr]] = None
    ) -> ast.stmt:
        return _node_fields(
            ast.ClassDef,
            name=name,
            bases=bases,
            keywords=[],
            body=[ast.Pass()],
            decorator_list=decorators or [],
        )


# ---------------------------------------------------------------------------
# Printing
# ---------------------------------------------------------------------------


def _print_class(header: ast.stmt, groups: list[list[ast.stmt]]) -> str:
    """Print a class with one blank line between member groups.

    Statements inside a group (docstring, fields, enum members) are printed
    on consecutive lines; every function forms its own group. Synthesized
    nodes carry no positions, and ``ast.unparse`` reads ``lineno`` on
    definitions, so locations are filled in before printing.
    """
    head = ast.unparse(ast.fix_missing_locations(header)).splitlines()[:-1]
    rendered = [
        ast.unparse(ast.fix_missing_locations(ast.Module(body=group, type_ignores=[])))
        for group in groups
        if group
    ]
    body = "\n\n".join(rendered) if rendered else "pass"
    return "\n".join(head) + "\n" + textwrap.indent(body, INDENT)


class PythonBackend(Backend):
    """Render a compilation unit as one Python module."""

    @property
    def name(self) -> str:
        return "python"

    @property
    def file_extension(self) -> str:
        return ".py"

    def render(self, unit: ir.CompilationUnit, config: GeneratorConfig) -> str:
        translator = _Translator(config)
        declarations: list[str] = []
        declarations.extend(self._enumeration(translator, e) for e in unit.enumerations)
        declarations.extend(self._entity(translator, e) for e in unit.entities)
        declarations.extend(self._wrapper(translator, w) for w in unit.wrappers)
        declarations.append(self._client(translator, unit.client))

        header = self._header(unit, config)
        imports = translator.imports.render(config.runtime_module)
        return header.rstrip("\n") + "\n\n" + imports + "\n\n\n" + "\n\n\n".join(declarations) + "\n"

    # -- banner -------------------------------------------------------------

    def _header(self, unit: ir.CompilationUnit, config: GeneratorConfig) -> str:
        env = _create_jinja_env()
        template = env.get_template("header.py.j2")
        return template.render(
            version=clientgen.__version__,
            client_name=config.client_name,
            runtime_module=config.runtime_module,
            enumerations=len(unit.enumerations),
            entities=len(unit.entities),
            wrappers=len(unit.wrappers),
            operations=len(unit.client.methods),
            extensions=sum(len(e.methods) for e in unit.entities),
        )

    # -- declarations -------------------------------------------------------

    def _enumeration(self, t: _Translator, decl: ir.EnumDecl) -> str:
        t.imports.modules.add("enum")
        base = _attr(_name("enum"), "IntFlag" if decl.is_flags else "IntEnum")

        decorators: list[ast.expr] = []
        if decl.serialize_as_string:
            t.imports.runtime.add("string_enum")
            names = {m.name: ast.Constant(m.serialization_name or m.name) for m in decl.members}
            decorators.append(_call(_name("string_enum"), **names))

        doc = decl.doc
        member_docs = tuple((m.name, m.doc.summary) for m in decl.members if m.doc.summary)
        if member_docs:
            doc = ir.DocComment(doc.summary, doc.remark, doc.returns, member_docs)
        docstring = _docstring(doc, heading="Attributes")

        members: list[ast.stmt] = []
        for member in decl.members:
            if member.value is None:
                value: ast.expr = _call(_attr(_name("enum"), "auto"))
            else:
                value = t.expr(member.value)
            members.append(
                ast.Assign(targets=[ast.Name(id=member.name, ctx=ast.Store())], value=value)
            )

        groups = [[docstring] if docstring else [], members]
        return _print_class(t.class_header(decl.name, [base], decorators), groups)

    def _entity(self, t: _Translator, decl: ir.ClassDecl) -> str:
        bases = [t.type_expr(decl.base)] if decl.base is not None else []
        docstring = _docstring(decl.doc)

        groups: list[list[ast.stmt]] = [
            [docstring] if docstring else [],
            [t.field(f) for f in decl.fields],
        ]
        for prop in decl.properties:
            groups.append([t.property_getter(prop, serialized=True)])
            if prop.setter:
                groups.append([t.property_setter(prop)])
        for method in decl.methods:
            groups.append([t.method(method)])
        return _print_class(t.class_header(decl.name, bases), groups)

    def _wrapper(self, t: _Translator, decl: ir.WrapperDecl) -> str:
        t.imports.runtime.add("Reference")
        docstring = _docstring(decl.doc)
        groups: list[list[ast.stmt]] = [
            [docstring] if docstring else [],
            [t.field(decl.value_field)],
            [t.property_getter(decl.value_property, serialized=False)],
        ]

        returns = _name(decl.name)
        for ctor in decl.constructors:
            *checks, last = ctor.statements
            if not isinstance(last, ir.Assign):
                raise BackendError(f"{decl.name}.{ctor.name}: constructor must end with an assignment")
            body = t.statements(tuple(checks)) + [
                ast.Return(value=_call(_name("cls"), t.expr(last.value)))
            ]
            args = t.arguments((ctor.argument,), first="cls")
            groups.append(
                [t.function(ctor.name, args, body, returns, decorators=[_name("classmethod")])]
            )

        for conversion in decl.conversions:
            *checks, last = conversion.statements
            if not isinstance(last, ir.Return) or last.value is None:
                raise BackendError(f"{decl.name}.{conversion.name}: conversion must end with a return")
            body = t.statements(tuple(checks)) + [
                ast.Return(value=_call(_name(decl.name), t.expr(last.value)))
            ]
            t.imports.runtime.add("implicit_conversion")
            decorators: list[ast.expr] = [
                _name("staticmethod"),
                _call(_name("implicit_conversion"), t.type_expr(conversion.source, runtime=True)),
            ]
            args = t.arguments((conversion.argument,), first=None)
            groups.append(
                [t.function(conversion.name, args, body, returns, decorators=decorators)]
            )

        bases: list[ast.expr] = [_name("Reference")]
        return _print_class(t.class_header(decl.name, bases), groups)

    def _client(self, t: _Translator, decl: ir.ClassDecl) -> str:
        bases = [t.type_expr(decl.base)] if decl.base is not None else []
        docstring = _docstring(decl.doc)
        groups: list[list[ast.stmt]] = [[docstring] if docstring else []]
        groups.extend([t.method(m)] for m in decl.methods)
        return _print_class(t.class_header(decl.name, bases), groups)


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the banner template."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("py.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
