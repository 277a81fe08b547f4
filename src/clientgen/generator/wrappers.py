"""Emit identifier wrapper declarations.

An identifier wrapper is a value type holding a single primitive (its
``final_type``). Each :class:`~clientgen.models.WrapperRef` names one source
type the wrapper can be built from and the property path that projects the
source down to the stored value::

    ProjectId
      refs: string               -> value = source
            Project (id)         -> value = source.id
            MergeRequest (project, id) -> value = source.project.id

Per ref the emitter produces a converting constructor and an implicit
conversion. Both reject an absent input before projecting when the source is
an entity or is nullable.
"""

from __future__ import annotations

from clientgen import ir
from clientgen.exceptions import ModelDefinitionError
from clientgen.generator.documentation import doc_comment
from clientgen.generator.naming import NamingConventions
from clientgen.generator.types import TypeReferenceResolver
from clientgen.models import IdentifierWrapper, WrapperRef

VALUE_PROPERTY = "value"


class IdentifierWrapperEmitter:
    def __init__(self, naming: NamingConventions, types: TypeReferenceResolver) -> None:
        self._naming = naming
        self._types = types

    def emit(self, wrapper: IdentifierWrapper) -> ir.WrapperDecl:
        """Emit the wrapper; a wrapper without refs yields a bare value holder."""
        value_type = self._types.base(wrapper.final_type)
        value_field = ir.FieldDecl(self._naming.field_name(VALUE_PROPERTY), value_type, readonly=True)
        value_property = ir.PropertyDecl(
            name=VALUE_PROPERTY,
            type=value_type,
            backing_field=value_field.name,
        )

        constructors: list[ir.ConstructorDecl] = []
        conversions: list[ir.ConversionDecl] = []
        names: set[str] = set()

        for ref in wrapper.refs:
            name = self._naming.conversion_name(ref.target.target)
            if name in names:
                raise ModelDefinitionError(
                    f"Wrapper {wrapper.name}: more than one ref from '{ref.target.target}'"
                )
            names.add(name)

            argument = ir.ArgumentDecl(
                name=self._naming.argument_name(ref.target.target),
                type=self._types.base(ref.target),
            )
            checks = self._checks(ref, argument)
            projected = self._project(ref, argument)

            constructors.append(
                ir.ConstructorDecl(
                    name=name,
                    source=argument.type,
                    argument=argument,
                    statements=checks + (ir.Assign(ir.FieldRef(value_field.name), projected),),
                )
            )
            conversions.append(
                ir.ConversionDecl(
                    name=f"_convert_{name}",
                    source=argument.type,
                    argument=argument,
                    statements=checks + (ir.Return(projected),),
                )
            )

        return ir.WrapperDecl(
            name=self._naming.type_name(wrapper.name),
            value_field=value_field,
            value_property=value_property,
            constructors=tuple(constructors),
            conversions=tuple(conversions),
            doc=doc_comment(wrapper.documentation),
        )

    def _checks(self, ref: WrapperRef, argument: ir.ArgumentDecl) -> tuple[ir.Statement, ...]:
        if ref.target.is_entity or ref.target.is_nullable:
            return (ir.ThrowIfNull(argument.name),)
        return ()

    def _project(self, ref: WrapperRef, argument: ir.ArgumentDecl) -> ir.Expression:
        expression: ir.Expression = ir.ArgumentRef(argument.name)
        for step in ref.property_path:
            expression = ir.MemberRef(expression, self._naming.property_name(step))
        return expression
