"""Tests for clientgen.registry.extractor."""

from __future__ import annotations

from typing import Any

import pytest

from clientgen.exceptions import ModelDefinitionError
from clientgen.models import (
    MethodType,
    ModelRef,
    ModelRegistry,
    ParameterLocation,
    PrimitiveType,
    TargetKind,
)
from clientgen.registry.extractor import TypeTable, registry_from_document


@pytest.fixture
def table() -> TypeTable:
    return TypeTable.from_document(
        {
            "externals": ["PathWithNamespace"],
            "enumerations": [{"name": "AccessLevel"}],
            "entities": [{"name": "Project"}],
            "wrappers": [{"name": "ProjectId"}],
        }
    )


class TestTypeTable:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("int64", ModelRef.primitive("int64")),
            ("Project[]", ModelRef.entity("Project", collection=True)),
            ("AccessLevel?", ModelRef.enumeration("AccessLevel", nullable=True)),
            ("ProjectId[]?", ModelRef.wrapper("ProjectId", collection=True, nullable=True)),
            (" PathWithNamespace ", ModelRef.external("PathWithNamespace")),
        ],
    )
    def test_shorthand(self, table: TypeTable, text: str, expected: ModelRef) -> None:
        assert table.parse(text) == expected

    def test_mapping_passes_through(self, table: TypeTable) -> None:
        value = {"kind": "entity", "target": "Project"}
        assert table.parse(value) is value

    def test_malformed(self, table: TypeTable) -> None:
        with pytest.raises(ModelDefinitionError, match="Malformed type reference 'Project\\?\\[\\]'"):
            table.parse("Project?[]")

    def test_unknown(self, table: TypeTable) -> None:
        with pytest.raises(ModelDefinitionError, match="Unknown type 'User'"):
            table.parse("User[]")


class TestRegistryFromDocument:
    def test_gitlab_model(self, gitlab_registry: ModelRegistry) -> None:
        project = gitlab_registry.entity("Project")
        assert project is not None
        props = {p.name: p for p in project.properties}
        assert props["tag_list"].type == ModelRef.primitive("string", collection=True)
        assert props["last_activity_at"].type.is_nullable
        assert props["path_with_namespace"].type.kind == TargetKind.EXTERNAL
        assert props["path_with_namespace"].json_converter == ModelRef.external(
            "PathWithNamespaceConverter"
        )
        assert project.documentation is not None
        assert project.documentation.summary

    def test_wrapper_refs(self, gitlab_registry: ModelRegistry) -> None:
        wrapper = gitlab_registry.wrapper("ProjectId")
        assert wrapper is not None
        assert wrapper.final_type.primitive_type == PrimitiveType.INT64
        assert [(r.target.target, r.property_path) for r in wrapper.refs] == [
            ("int64", ()),
            ("Project", ("id",)),
        ]

    def test_methods(self, gitlab_registry: ModelRegistry) -> None:
        by_name = {m.name: m for m in gitlab_registry.methods}
        assert by_name["GetProjects"].method_type == MethodType.GET_PAGED
        assert by_name["GetProjects"].return_type == ModelRef.entity("Project", collection=True)
        assert by_name["DeleteProject"].return_type is None

    def test_enumeration_member_shorthand(self) -> None:
        registry = registry_from_document(
            {"enumerations": [{"name": "Visibility", "members": ["Private", {"name": "Public", "value": 20}]}]}
        )
        members = registry.enumerations[0].members
        assert [(m.name, m.value) for m in members] == [("Private", None), ("Public", 20)]

    def test_documentation_shorthand(self) -> None:
        registry = registry_from_document(
            {"entities": [{"name": "Project", "documentation": "A GitLab project."}]}
        )
        assert registry.entities[0].documentation.summary == "A GitLab project."

    def test_explicit_location(self) -> None:
        registry = registry_from_document(
            {
                "methods": [
                    {
                        "name": "Search",
                        "method_type": "post",
                        "url_template": "/search",
                        "parameters": [{"name": "scope", "type": "string", "location": "url"}],
                    }
                ]
            }
        )
        assert registry.methods[0].parameters[0].location == ParameterLocation.URL

    @pytest.mark.parametrize(
        "document, message",
        [
            ({"entities": {"name": "Project"}}, "Section 'entities' must be a list"),
            ({"entities": ["Project"]}, "Entries of 'entities' must be mappings"),
            (
                {"methods": [{"name": "Get", "method_type": "patch", "url_template": "/"}]},
                "Invalid Method 'Get'",
            ),
            (
                {"entities": [{"name": "Project", "properties": [{"name": "id", "type": "uint"}]}]},
                "Unknown type 'uint'",
            ),
        ],
    )
    def test_malformed_documents(self, document: dict[str, Any], message: str) -> None:
        with pytest.raises(ModelDefinitionError, match=message):
            registry_from_document(document)

    def test_empty_document(self) -> None:
        assert registry_from_document({"clientgen": 1}) == ModelRegistry()
