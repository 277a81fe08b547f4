"""Emit entity class declarations.

Every model property becomes three things on the emitted class:

* a private backing field (``_created_at``);
* a public read-only property delegating to it (``created_at``);
* a private setter used by deserialization (``_set_created_at``).

Serialization metadata travels as plain data on the
:class:`~clientgen.ir.PropertyDecl`; the backend decides how to express it.
"""

from __future__ import annotations

from typing import Optional

from clientgen import ir
from clientgen.exceptions import ModelDefinitionError
from clientgen.generator.documentation import doc_comment
from clientgen.generator.naming import NamingConventions
from clientgen.generator.types import TypeReferenceResolver
from clientgen.models import Entity, PrimitiveType, Property

DATE_VALIDATION_BYPASS = "Does not contain time nor timezone (e.g. 2018-01-01)"

# Members every entity inherits from the runtime ApiObject.
RESERVED_MEMBERS = frozenset({"client", "from_json", "to_json"})


class EntityEmitter:
    """Produce one :class:`~clientgen.ir.ClassDecl` per entity.

    Args:
        naming: Naming conventions for emitted identifiers.
        types: Resolver used for property and converter types.
        base_type: Name of the common base class for entities that do not
            declare one.
    """

    def __init__(
        self,
        naming: NamingConventions,
        types: TypeReferenceResolver,
        base_type: str,
    ) -> None:
        self._naming = naming
        self._types = types
        self._base_type = base_type

    def emit(self, entity: Entity) -> ir.ClassDecl:
        """Emit the class declaration for *entity*.

        Raises:
            ModelDefinitionError: If two properties map to the same emitted name,
                or a property would shadow a member of the entity base class.
        """
        fields: list[ir.FieldDecl] = []
        properties: list[ir.PropertyDecl] = []
        seen: dict[str, str] = {}

        for prop in entity.properties:
            decl = self._property(prop)
            if decl.name in RESERVED_MEMBERS:
                raise ModelDefinitionError(
                    f"Entity {entity.name}: property '{prop.name}' maps to '{decl.name}', "
                    "which is reserved by the entity base class"
                )
            if decl.name in seen:
                raise ModelDefinitionError(
                    f"Entity {entity.name}: properties '{seen[decl.name]}' and "
                    f"'{prop.name}' both map to '{decl.name}'"
                )
            seen[decl.name] = prop.name
            fields.append(ir.FieldDecl(decl.backing_field, decl.type))
            properties.append(decl)

        return ir.ClassDecl(
            name=self._naming.type_name(entity.name),
            base=self._base(entity),
            fields=tuple(fields),
            properties=tuple(properties),
            doc=doc_comment(entity.documentation),
        )

    def _base(self, entity: Entity) -> ir.TypeRef:
        if entity.base_type:
            return ir.TypeRef(self._naming.type_name(entity.base_type), ir.TypeKind.ENTITY)
        return ir.TypeRef(self._base_type, ir.TypeKind.RUNTIME)

    def _property(self, prop: Property) -> ir.PropertyDecl:
        converter: Optional[ir.TypeRef] = None
        if prop.json_converter is not None:
            converter = self._types.base(prop.json_converter)

        bypass = None
        if prop.type.primitive_type == PrimitiveType.DATE and not prop.type.is_collection:
            bypass = DATE_VALIDATION_BYPASS

        return ir.PropertyDecl(
            name=self._naming.property_name(prop.name),
            type=self._types.property_type(prop.type),
            backing_field=self._naming.field_name(prop.name),
            setter=self._naming.setter_name(prop.name),
            serialization_name=prop.serialization_name or prop.name,
            converter=converter,
            validation_bypass=bypass,
            doc=doc_comment(prop.documentation),
        )
