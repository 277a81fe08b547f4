"""Tests for the enumeration, entity and identifier wrapper emitters."""

from __future__ import annotations

import pytest

from clientgen import ir
from clientgen.exceptions import ModelDefinitionError
from clientgen.generator.entities import DATE_VALIDATION_BYPASS, EntityEmitter
from clientgen.generator.enumerations import EnumerationEmitter
from clientgen.generator.naming import NamingConventions
from clientgen.generator.types import TypeReferenceResolver
from clientgen.generator.wrappers import IdentifierWrapperEmitter
from clientgen.models import (
    Documentation,
    Entity,
    Enumeration,
    EnumerationMember,
    IdentifierWrapper,
    ModelRef,
    PrimitiveType,
    Property,
    WrapperRef,
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TestEnumerationEmitter:
    def test_members_keep_order_and_values(self, naming: NamingConventions) -> None:
        enumeration = Enumeration(
            name="AccessLevel",
            members=(
                EnumerationMember(name="Guest", value=10),
                EnumerationMember(name="Owner", value=50),
                EnumerationMember(name="Custom"),
            ),
        )
        decl = EnumerationEmitter(naming).emit(enumeration)
        assert [m.name for m in decl.members] == ["GUEST", "OWNER", "CUSTOM"]
        assert decl.members[0].value == ir.Literal(10)
        assert decl.members[2].value is None
        assert all(m.serialization_name is None for m in decl.members)

    def test_flags_with_all_member(self, naming: NamingConventions) -> None:
        enumeration = Enumeration(
            name="Permissions",
            is_flags=True,
            generate_all_member=True,
            members=(
                EnumerationMember(name="Read", value=1),
                EnumerationMember(name="Write", value=2),
            ),
        )
        decl = EnumerationEmitter(naming).emit(enumeration)
        assert decl.is_flags
        all_member = decl.members[-1]
        assert all_member.name == "ALL"
        assert all_member.value == ir.BinaryOp(
            ir.BinaryOperator.BITWISE_OR, ir.EnumMemberRef("READ"), ir.EnumMemberRef("WRITE")
        )

    def test_all_member_without_members(self, naming: NamingConventions) -> None:
        enumeration = Enumeration(name="Empty", is_flags=True, generate_all_member=True)
        decl = EnumerationEmitter(naming).emit(enumeration)
        assert decl.members == (ir.EnumMemberDecl("ALL", ir.Literal(0)),)

    def test_string_serialization_names(self, naming: NamingConventions) -> None:
        enumeration = Enumeration(
            name="IssueState",
            serialize_as_string=True,
            members=(
                EnumerationMember(name="Opened", serialization_name="opened"),
                EnumerationMember(name="Closed"),
            ),
        )
        decl = EnumerationEmitter(naming).emit(enumeration)
        assert decl.serialize_as_string
        assert [m.serialization_name for m in decl.members] == ["opened", "Closed"]

    def test_declared_all_collides_with_generated_all(self, naming: NamingConventions) -> None:
        enumeration = Enumeration(
            name="Permissions",
            is_flags=True,
            generate_all_member=True,
            members=(
                EnumerationMember(name="read", value=1),
                EnumerationMember(name="all", value=2),
            ),
        )
        with pytest.raises(ModelDefinitionError, match="Permissions: more than one member named 'ALL'"):
            EnumerationEmitter(naming).emit(enumeration)

    def test_members_mapping_to_one_name(self, naming: NamingConventions) -> None:
        enumeration = Enumeration(
            name="Visibility",
            members=(
                EnumerationMember(name="InternalOnly"),
                EnumerationMember(name="internal_only"),
            ),
        )
        with pytest.raises(ModelDefinitionError, match="more than one member named 'INTERNAL_ONLY'"):
            EnumerationEmitter(naming).emit(enumeration)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@pytest.fixture
def entity_emitter(naming: NamingConventions, types: TypeReferenceResolver) -> EntityEmitter:
    return EntityEmitter(naming, types, "ApiObject")


class TestEntityEmitter:
    def test_property_triple(self, entity_emitter: EntityEmitter) -> None:
        entity = Entity(
            name="Project",
            properties=(Property(name="createdAt", type=ModelRef.primitive("datetime")),),
        )
        decl = entity_emitter.emit(entity)
        assert decl.fields == (ir.FieldDecl("_created_at", ir.TypeRef("datetime", ir.TypeKind.PRIMITIVE)),)
        prop = decl.properties[0]
        assert prop.name == "created_at"
        assert prop.backing_field == "_created_at"
        assert prop.setter == "_set_created_at"
        # The JSON key is the raw model name, never case-converted.
        assert prop.serialization_name == "createdAt"

    def test_default_and_declared_base(self, entity_emitter: EntityEmitter) -> None:
        plain = entity_emitter.emit(Entity(name="Project"))
        derived = entity_emitter.emit(Entity(name="Group", base_type="Namespace"))
        assert plain.base == ir.TypeRef("ApiObject", ir.TypeKind.RUNTIME)
        assert derived.base == ir.TypeRef("Namespace", ir.TypeKind.ENTITY)

    def test_serialization_override_and_converter(self, entity_emitter: EntityEmitter) -> None:
        entity = Entity(
            name="Project",
            properties=(
                Property(
                    name="path",
                    serialization_name="path_with_namespace",
                    type=ModelRef.external("PathWithNamespace"),
                    json_converter=ModelRef.external("PathWithNamespaceConverter"),
                ),
            ),
        )
        prop = entity_emitter.emit(entity).properties[0]
        assert prop.serialization_name == "path_with_namespace"
        assert prop.converter == ir.TypeRef("PathWithNamespaceConverter", ir.TypeKind.EXTERNAL)

    def test_date_validation_bypass(self, entity_emitter: EntityEmitter) -> None:
        entity = Entity(
            name="Milestone",
            properties=(
                Property(name="due_date", type=ModelRef.primitive("date", nullable=True)),
                Property(name="dates", type=ModelRef.primitive("date", collection=True)),
                Property(name="created_at", type=ModelRef.primitive("datetime")),
            ),
        )
        bypasses = [p.validation_bypass for p in entity_emitter.emit(entity).properties]
        assert bypasses == [DATE_VALIDATION_BYPASS, None, None]

    def test_collection_property_is_read_only_sequence(self, entity_emitter: EntityEmitter) -> None:
        entity = Entity(
            name="Project",
            properties=(Property(name="tag_list", type=ModelRef.primitive("string", collection=True)),),
        )
        prop = entity_emitter.emit(entity).properties[0]
        assert prop.type.name == ir.READ_ONLY_SEQUENCE

    def test_documentation(self, entity_emitter: EntityEmitter) -> None:
        entity = Entity(name="Project", documentation=Documentation(summary="A project."))
        assert entity_emitter.emit(entity).doc.summary == "A project."
        assert entity_emitter.emit(Entity(name="Bare")).doc.is_empty

    def test_colliding_property_names(self, entity_emitter: EntityEmitter) -> None:
        entity = Entity(
            name="Project",
            properties=(
                Property(name="createdAt", type=ModelRef.primitive("datetime")),
                Property(name="created_at", type=ModelRef.primitive("datetime")),
            ),
        )
        with pytest.raises(ModelDefinitionError, match="both map to 'created_at'"):
            entity_emitter.emit(entity)

    @pytest.mark.parametrize("name", ["client", "Client", "to_json", "fromJson"])
    def test_property_shadowing_base_member(self, entity_emitter: EntityEmitter, name: str) -> None:
        entity = Entity(
            name="Runner",
            properties=(Property(name=name, type=ModelRef.primitive("string")),),
        )
        with pytest.raises(ModelDefinitionError, match="reserved by the entity base class"):
            entity_emitter.emit(entity)


# ---------------------------------------------------------------------------
# Identifier wrappers
# ---------------------------------------------------------------------------


@pytest.fixture
def wrapper_emitter(
    naming: NamingConventions, types: TypeReferenceResolver
) -> IdentifierWrapperEmitter:
    return IdentifierWrapperEmitter(naming, types)


class TestIdentifierWrapperEmitter:
    def test_two_refs_give_two_constructors_and_conversions(
        self, wrapper_emitter: IdentifierWrapperEmitter
    ) -> None:
        wrapper = IdentifierWrapper(
            name="ProjectId",
            final_type=ModelRef.primitive(PrimitiveType.INT64),
            refs=(
                WrapperRef(target=ModelRef.primitive(PrimitiveType.INT64)),
                WrapperRef(target=ModelRef.entity("Project"), property_path=("id",)),
            ),
        )
        decl = wrapper_emitter.emit(wrapper)
        assert [c.name for c in decl.constructors] == ["from_int64", "from_project"]
        assert [c.name for c in decl.conversions] == ["_convert_from_int64", "_convert_from_project"]

    def test_value_property(self, wrapper_emitter: IdentifierWrapperEmitter) -> None:
        wrapper = IdentifierWrapper(name="ProjectId", final_type=ModelRef.primitive("int64"))
        decl = wrapper_emitter.emit(wrapper)
        assert decl.value_field == ir.FieldDecl(
            "_value", ir.TypeRef("int64", ir.TypeKind.PRIMITIVE), readonly=True
        )
        assert decl.value_property.name == "value"
        assert decl.value_property.setter is None
        assert decl.constructors == decl.conversions == ()

    def test_entity_source_is_null_checked_and_projected(
        self, wrapper_emitter: IdentifierWrapperEmitter
    ) -> None:
        wrapper = IdentifierWrapper(
            name="ProjectId",
            final_type=ModelRef.primitive("int64"),
            refs=(
                WrapperRef(
                    target=ModelRef.entity("MergeRequest"),
                    property_path=("project", "id"),
                ),
            ),
        )
        decl = wrapper_emitter.emit(wrapper)
        projected = ir.MemberRef(ir.MemberRef(ir.ArgumentRef("merge_request"), "project"), "id")
        assert decl.constructors[0].statements == (
            ir.ThrowIfNull("merge_request"),
            ir.Assign(ir.FieldRef("_value"), projected),
        )
        assert decl.conversions[0].statements == (
            ir.ThrowIfNull("merge_request"),
            ir.Return(projected),
        )

    def test_primitive_source_is_not_null_checked(
        self, wrapper_emitter: IdentifierWrapperEmitter
    ) -> None:
        wrapper = IdentifierWrapper(
            name="ProjectPath",
            final_type=ModelRef.primitive("string"),
            refs=(
                WrapperRef(target=ModelRef.primitive("string")),
                WrapperRef(target=ModelRef.external("PathWithNamespace", nullable=True)),
            ),
        )
        decl = wrapper_emitter.emit(wrapper)
        assert decl.constructors[0].statements == (
            ir.Assign(ir.FieldRef("_value"), ir.ArgumentRef("string")),
        )
        assert decl.constructors[1].statements[0] == ir.ThrowIfNull("path_with_namespace")

    def test_duplicate_source_raises(self, wrapper_emitter: IdentifierWrapperEmitter) -> None:
        wrapper = IdentifierWrapper(
            name="ProjectId",
            final_type=ModelRef.primitive("int64"),
            refs=(
                WrapperRef(target=ModelRef.entity("Project"), property_path=("id",)),
                WrapperRef(target=ModelRef.entity("Project"), property_path=("parent_id",)),
            ),
        )
        with pytest.raises(ModelDefinitionError, match="more than one ref"):
            wrapper_emitter.emit(wrapper)
