"""Synthesize client operations from method descriptions.

:class:`MethodBodySynthesizer` turns one :class:`~clientgen.models.Method`
into a :class:`~clientgen.ir.MethodDecl`: the signature plus a statement
sequence that

1. seeds a URL builder from the URL template and appends every URL-located
   parameter (wrapper values are unwrapped, nullable ones behind a presence
   guard);
2. for ``get_paged``, appends ``page``, ``per_page`` and the
   ``order_by``/``sort`` pair when the caller supplied page options;
3. builds the URL;
4. for ``put``/``post`` with body-located parameters, assembles the body
   mapping (optional entries behind a presence guard);
5. awaits exactly one transport primitive and returns its result.

The emitted code for ``GetProjectIssues`` reads roughly::

    async def get_project_issues(self, project_id, state=None, cancellation_token=None):
        url_builder = UrlBuilder.get('/projects/:project_id/issues')
        url_builder.with_value('project_id', ProjectId.coerce(project_id).value)
        url_builder.with_value('state', state)
        url = url_builder.build()
        return await self.get_collection(url, Issue, cancellation_token)
"""

from __future__ import annotations

import logging
from typing import Optional

from clientgen import ir
from clientgen.exceptions import ModelDefinitionError
from clientgen.generator.documentation import doc_comment
from clientgen.generator.locations import ParameterLocationResolver
from clientgen.generator.naming import NamingConventions
from clientgen.generator.types import TypeReferenceResolver
from clientgen.models import Method, MethodParameter, MethodType, ModelRegistry

logger = logging.getLogger(__name__)

URL_BUILDER_VARIABLE = "url_builder"
URL_VARIABLE = "url"
BODY_VARIABLE = "body"
PAGE_OPTIONS_ARGUMENT = "page_options"
CANCELLATION_ARGUMENT = "cancellation_token"

# Query keys understood by the remote API for paging.
PAGE_KEY = "page"
PER_PAGE_KEY = "per_page"
ORDER_BY_KEY = "order_by"
SORT_KEY = "sort"

_ABSENT = ir.Literal(None)


class MethodBodySynthesizer:
    """Build the signature and body of base client operations.

    Args:
        registry: The model registry; used to recognise wrapper references.
        naming: Naming conventions for emitted identifiers.
        types: Resolver for argument and return types.
        locations: Resolver deciding URL vs body placement.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        naming: NamingConventions,
        types: TypeReferenceResolver,
        locations: ParameterLocationResolver,
    ) -> None:
        self._registry = registry
        self._naming = naming
        self._types = types
        self._locations = locations

    def synthesize(self, method: Method) -> ir.MethodDecl:
        """Synthesize the full operation for *method*.

        Raises:
            ModelDefinitionError: For an unsupported method type, a fetch
                without a return type, or two arguments with the same name.
        """
        primitive = self.dispatch(method)
        arguments = self._arguments(method)
        result_type, return_type = self._return_types(method)

        statements: list[ir.Statement] = [
            ir.VariableDecl(
                URL_BUILDER_VARIABLE, ir.TypeRef(ir.URL_BUILDER), ir.UrlSeed(method.url_template)
            )
        ]
        statements.extend(self._url_statements(method, arguments))
        if method.method_type == MethodType.GET_PAGED:
            statements.append(self._paging_statement())
        statements.append(
            ir.VariableDecl(
                URL_VARIABLE,
                ir.TypeRef("string", ir.TypeKind.PRIMITIVE),
                ir.UrlBuild(URL_BUILDER_VARIABLE),
            )
        )

        body: Optional[ir.Expression] = None
        body_statements = self._body_statements(method, primitive, arguments)
        if body_statements:
            statements.extend(body_statements)
            body = ir.VariableRef(BODY_VARIABLE)

        call = ir.TransportCall(
            primitive=primitive,
            result_type=result_type,
            url=ir.VariableRef(URL_VARIABLE),
            cancellation=ir.ArgumentRef(CANCELLATION_ARGUMENT),
            body=body,
        )
        statements.append(ir.Return(ir.Await(call)))

        return ir.MethodDecl(
            name=self._naming.method_name(method.name),
            arguments=tuple(arguments),
            return_type=ir.TypeRef.generic(ir.AWAITABLE, return_type),
            statements=tuple(statements),
            doc=doc_comment(
                method.documentation,
                [(a.name, a.doc) for a in arguments if a.doc],
            ),
            source=method.name,
        )

    def dispatch(self, method: Method) -> ir.TransportPrimitive:
        """Select the transport primitive for *method*."""
        method_type = method.method_type
        if method_type == MethodType.GET:
            if method.return_type is not None and method.return_type.is_collection:
                return ir.TransportPrimitive.FETCH_COLLECTION
            return ir.TransportPrimitive.FETCH_ITEM
        if method_type == MethodType.GET_PAGED:
            return ir.TransportPrimitive.FETCH_PAGED
        if method_type == MethodType.PUT:
            return ir.TransportPrimitive.PUT_BODY
        if method_type == MethodType.POST:
            return ir.TransportPrimitive.POST_BODY
        if method_type == MethodType.DELETE:
            return ir.TransportPrimitive.DELETE
        raise ModelDefinitionError(
            f"Method {method.name}: method type {method_type!r} is not supported"
        )

    # ------------------------------------------------------------------
    # Signature
    # ------------------------------------------------------------------

    def _arguments(self, method: Method) -> list[ir.ArgumentDecl]:
        required = [p for p in method.parameters if not p.is_optional]
        optional = [p for p in method.parameters if p.is_optional]

        arguments = [self._argument(p) for p in required + optional]
        if method.method_type == MethodType.GET_PAGED:
            arguments.append(
                ir.ArgumentDecl(PAGE_OPTIONS_ARGUMENT, ir.TypeRef(ir.PAGE_OPTIONS), default=_ABSENT)
            )
        arguments.append(
            ir.ArgumentDecl(
                CANCELLATION_ARGUMENT, ir.TypeRef(ir.CANCELLATION_TOKEN), default=_ABSENT
            )
        )

        seen: set[str] = set()
        for argument in arguments:
            if argument.name in seen:
                raise ModelDefinitionError(
                    f"Method {method.name}: argument name '{argument.name}' is used twice"
                )
            seen.add(argument.name)
        return arguments

    def _argument(self, parameter: MethodParameter) -> ir.ArgumentDecl:
        name = parameter.override_argument_name or self._naming.argument_name(parameter.name)
        doc = parameter.documentation.summary if parameter.documentation else None
        return ir.ArgumentDecl(
            name=name,
            type=self._types.argument_type(parameter.type),
            default=_ABSENT if parameter.is_optional else None,
            parameter=parameter.name,
            doc=doc,
        )

    def _return_types(self, method: Method) -> tuple[Optional[ir.TypeRef], ir.TypeRef]:
        """Return the transport result type and the awaited return type."""
        method_type = method.method_type
        return_ref = method.return_type

        if method_type in (MethodType.GET, MethodType.GET_PAGED):
            if return_ref is None:
                raise ModelDefinitionError(
                    f"Method {method.name}: a {method_type.value} method needs a return type"
                )
            element = self._types.base(return_ref.element())
            if method_type == MethodType.GET_PAGED:
                return element, ir.TypeRef.generic(ir.PAGED_RESPONSE, element)
            if return_ref.is_collection:
                return element, ir.TypeRef.generic(ir.READ_ONLY_SEQUENCE, element)
            return element, element

        if method_type == MethodType.DELETE:
            if return_ref is not None:
                logger.debug("Method %s: return type of a delete is ignored", method.name)
            return None, ir.VOID_TYPE

        if return_ref is None:
            return None, ir.VOID_TYPE
        result = self._types.property_type(return_ref)
        return result, result

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _url_statements(
        self, method: Method, arguments: list[ir.ArgumentDecl]
    ) -> list[ir.Statement]:
        statements: list[ir.Statement] = []
        for parameter in self._locations.url_parameters(method):
            argument = self._argument_for(arguments, parameter)
            guarded = self._needs_guard(parameter)
            append = ir.UrlAppend(
                URL_BUILDER_VARIABLE, parameter.name, self._value(parameter, argument, guarded)
            )
            if guarded:
                statements.append(ir.Condition(ir.IsPresent(ir.ArgumentRef(argument.name)), (append,)))
            else:
                statements.append(append)
        return statements

    def _paging_statement(self) -> ir.Statement:
        options = ir.ArgumentRef(PAGE_OPTIONS_ARGUMENT)
        page_index = ir.MemberRef(options, "page_index")
        page_size = ir.MemberRef(options, "page_size")
        order_by = ir.MemberRef(options, "order_by")
        order_name = ir.MemberRef(order_by, "name")

        zero = ir.Literal(0)
        checks = (
            ir.Condition(
                ir.BinaryOp(ir.BinaryOperator.GREATER_THAN, page_index, zero),
                (ir.UrlAppend(URL_BUILDER_VARIABLE, PAGE_KEY, page_index),),
            ),
            ir.Condition(
                ir.BinaryOp(ir.BinaryOperator.GREATER_THAN, page_size, zero),
                (ir.UrlAppend(URL_BUILDER_VARIABLE, PER_PAGE_KEY, page_size),),
            ),
            ir.Condition(
                ir.IsNotEmpty(order_name),
                (
                    ir.UrlAppend(URL_BUILDER_VARIABLE, ORDER_BY_KEY, order_name),
                    ir.UrlAppend(
                        URL_BUILDER_VARIABLE, SORT_KEY, ir.MemberRef(order_by, "direction")
                    ),
                ),
            ),
        )
        return ir.Condition(ir.IsPresent(options), checks)

    def _body_statements(
        self,
        method: Method,
        primitive: ir.TransportPrimitive,
        arguments: list[ir.ArgumentDecl],
    ) -> list[ir.Statement]:
        parameters = self._locations.body_parameters(method)
        if not parameters:
            return []
        if not primitive.carries_body:
            logger.debug(
                "Method %s: %d body parameter(s) dropped, %s carries no payload",
                method.name,
                len(parameters),
                primitive.value,
            )
            return []

        statements: list[ir.Statement] = [
            ir.VariableDecl(BODY_VARIABLE, ir.TypeRef(ir.STRING_MAP), ir.NewMapping())
        ]
        for parameter in parameters:
            argument = self._argument_for(arguments, parameter)
            guarded = parameter.is_optional or self._needs_guard(parameter)
            insert = ir.MappingInsert(
                BODY_VARIABLE,
                parameter.name,
                self._value(parameter, argument, guarded),
            )
            if guarded:
                statements.append(ir.Condition(ir.IsPresent(ir.ArgumentRef(argument.name)), (insert,)))
            else:
                statements.append(insert)
        return statements

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _argument_for(
        arguments: list[ir.ArgumentDecl], parameter: MethodParameter
    ) -> ir.ArgumentDecl:
        return next(a for a in arguments if a.parameter == parameter.name)

    def _is_scalar_wrapper(self, parameter: MethodParameter) -> bool:
        return (
            not parameter.type.is_collection
            and self._registry.wrapper_for(parameter.type) is not None
        )

    def _needs_guard(self, parameter: MethodParameter) -> bool:
        # An optional wrapper defaults to absent and cannot be unwrapped unguarded.
        return self._is_scalar_wrapper(parameter) and (
            parameter.type.is_nullable or parameter.is_optional
        )

    def _value(
        self, parameter: MethodParameter, argument: ir.ArgumentDecl, guarded: bool
    ) -> ir.Expression:
        value: ir.Expression = ir.ArgumentRef(argument.name)
        if self._is_scalar_wrapper(parameter) and (guarded or not parameter.type.is_nullable):
            return ir.Unwrap(value, self._types.base(parameter.type.element()))
        return value
